"""
Font discovery, loading and lookup.

Fonts are loaded from the primary font directory ("fonts" by default). Font
files found in the configured extra scan paths are not copied, a proxy record
pointing at each of them is written to the font directory instead. When a
proxied font fails to load the failure is recorded in the proxy and its name
gets the "[ERROR] " prefix until the font loads again.
"""

import logging
from pathlib import Path

from blocktext.config import BlockTextConfig
from blocktext.errors import (
    BlockTextError,
    IoFailureError,
    LoadFailureError,
    NotFoundError,
    UnsupportedTypeError,
)
from blocktext.fonts import FontHandle, FontStore, file_name_without_type
from blocktext.parallel import compute_all, delayed
from blocktext.proxy import (
    ERROR_PREFIX,
    ProxyError,
    ProxyRecord,
    is_error_marked,
    is_font_file_name,
    is_proxy_file_name,
)

log = logging.getLogger(__name__)

FALLBACK_FONT = 'Arial'


class FontResolver:
    """Loads fonts into a FontStore and resolves font names to sized handles.

    On construction the font directory is scanned (including extra scan
    paths and error marked proxies) and the default font is settled:
    the configured default, else Arial, else the first loaded font by
    display name. If nothing loaded the default name is empty and
    default_font() returns None.
    """

    def __init__(self, config: BlockTextConfig | None = None,
                 store: FontStore | None = None, scan_on_init: bool = True):
        self.config = config if config is not None else BlockTextConfig()
        self.font_dir = Path(self.config.font_dir)
        self.store = store if store is not None else FontStore()
        self.default_font_name = self.config.default_font
        if scan_on_init:
            self.scan(search_extra_dirs=True, include_error_proxies=True, load_again=False)
            self._settle_default_font()

    def _settle_default_font(self):
        requested = self.config.default_font
        if self.resolve(requested) is not None:
            self.default_font_name = requested
            return
        if not len(self.store):
            log.warning("No fonts loaded! Text cannot be rendered until a font is loaded.")
            self.default_font_name = ''
            return
        if self.resolve(FALLBACK_FONT) is not None:
            self.default_font_name = FALLBACK_FONT
        else:
            self.default_font_name = self.font_names()[0]
        log.warning(f'Font "{requested}" was not found. Using {self.default_font_name} instead.')

    # --- Scanning ---

    def scan(self, search_extra_dirs: bool = True, include_error_proxies: bool = True,
             load_again: bool = False) -> list[FontHandle]:
        """Loads every font file and proxy in the font directory.

        Args:
            search_extra_dirs: Create proxies for fonts in the configured extra paths first.
            include_error_proxies: Also retry proxies marked with "[ERROR] ".
            load_again: Re-read files even if their key is already loaded.

        Returns:
            The handles loaded by this scan. Failures are logged, never raised.
        """
        try:
            self.font_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error(f"Unable to create font directory '{self.font_dir}' | {e}")
            return []

        if search_extra_dirs:
            self._proxy_extra_dirs()

        entries = self._font_dir_entries(include_error_proxies)
        if not entries:
            log.warning(f"No fonts found in '{self.font_dir}'.")
            return []

        load = delayed(self.load_noerr)
        results = compute_all(
            (load(entry, load_again=load_again) for entry in entries),
            num_workers=self.config.scan_workers)
        loaded = [handle for handle in results if handle is not None]
        log.debug(f"Scan of '{self.font_dir}' loaded {len(loaded)} of {len(entries)} entries")
        return loaded

    def _proxy_extra_dirs(self):
        candidates = []
        for extra in self.config.extra_scan_dirs:
            path = Path(extra).expanduser()
            if path.is_file():
                candidates.append(path)
            elif path.is_dir():
                try:
                    candidates.extend(
                        f for f in sorted(path.iterdir())
                        if f.is_file() and is_font_file_name(f.name))
                except OSError as e:
                    log.error(f"Unable to list extra scan directory '{path}' | {e}")
            else:
                log.debug(f"Extra scan path '{path}' does not exist, skipping.")
        create = delayed(self.create_proxy_noerr)
        compute_all((create(path) for path in candidates), num_workers=self.config.scan_workers)

    def _font_dir_entries(self, include_error_proxies: bool) -> list[Path]:
        try:
            paths = sorted(self.font_dir.iterdir())
        except OSError as e:
            log.error(f"Unable to list font directory '{self.font_dir}' | {e}")
            return []
        entries = []
        for path in paths:
            name = path.name
            if is_font_file_name(name):
                entries.append(path)
            elif is_proxy_file_name(name) and (include_error_proxies or not is_error_marked(name)):
                entries.append(path)
        return entries

    # --- Proxies ---

    def create_proxy(self, path: 'Path | str') -> ProxyRecord:
        """Writes a proxy for the font file at path into the font directory.

        Any existing proxy for the same file name, marked or not, is replaced.

        Raises:
            UnsupportedTypeError: path is not a font file name.
            IoFailureError: the proxy could not be written.
        """
        path = Path(path)
        if not is_font_file_name(path.name):
            raise UnsupportedTypeError(f"Unsupported file type: {path.name}")
        record = ProxyRecord.for_font(self.font_dir, path)
        marked = record.path.with_name(ERROR_PREFIX + record.path.name)
        try:
            self.font_dir.mkdir(parents=True, exist_ok=True)
            if marked.exists():
                marked.unlink()
            record = record.write()
        except OSError as e:
            raise IoFailureError(f"Unable to write proxy '{record.path.name}': {e}") from e
        log.debug(f"Created proxy '{record.path.name}' -> '{record.target}'")
        return record

    def create_proxy_noerr(self, path: 'Path | str') -> bool:
        """create_proxy() returning False instead of raising."""
        try:
            self.create_proxy(path)
            return True
        except BlockTextError as e:
            log.error(f"Unable to create proxy for '{path}' | {e}")
            return False

    def _mark_proxy(self, record: ProxyRecord, e: BaseException) -> ProxyRecord:
        try:
            return record.with_error(ProxyError.from_exception(e)).write()
        except OSError as write_error:
            # The proxy's disk may be gone, the load error is what matters.
            log.error(f"Unable to annotate proxy '{record.path.name}' | {write_error}")
            return record

    def _clear_proxy(self, record: ProxyRecord) -> ProxyRecord:
        try:
            cleared = record.with_error(None).write()
            log.info(f"Proxy '{cleared.path.name}' loaded again, error cleared.")
            return cleared
        except OSError as e:
            log.error(f"Unable to update proxy '{record.path.name}' | {e}")
            return record

    # --- Loading ---

    def load(self, path: 'Path | str', load_again: bool = False) -> FontHandle:
        """Loads a font file or the font a proxy points at.

        Args:
            path: A font file or proxy record.
            load_again: Re-read the font even if its key is already loaded.

        Raises:
            UnsupportedTypeError: path is neither a font file nor a proxy.
            IoFailureError: the proxy could not be read.
            LoadFailureError: the font could not be read or parsed.
        """
        path = Path(path)
        record = None
        target = path
        if is_proxy_file_name(path.name):
            try:
                record = ProxyRecord.read(path)
            except OSError as e:
                raise IoFailureError(f"Unable to read proxy '{path.name}': {e}") from e
            except ValueError as e:
                raise LoadFailureError(str(e)) from e
            target = record.target
        elif not is_font_file_name(path.name):
            raise UnsupportedTypeError(f"Unsupported file type: {path.name}")

        key = file_name_without_type(target)
        if not load_again:
            cached = self.store.get(key)
            if cached is not None:
                log.debug(f"'{key}' already loaded")
                return cached

        try:
            handle = FontHandle.from_file(target, key=key)
        except Exception as e:
            log.error(f"Unable to load {target.name} | {e}")
            if record is not None:
                self._mark_proxy(record, e)
            raise LoadFailureError(f"Unable to load {target.name}: {e}") from e

        handle = self.store.insert(key, handle)
        if record is not None and (record.is_marked or record.error is not None):
            self._clear_proxy(record)
        return handle

    def load_noerr(self, path: 'Path | str', load_again: bool = False) -> FontHandle | None:
        """load() returning None instead of raising."""
        try:
            return self.load(path, load_again=load_again)
        except BlockTextError as e:
            log.debug(f"Skipping '{path}' | {e}")
            return None

    # --- Lookup ---

    def resolve(self, name: str, size: float | None = None) -> FontHandle | None:
        """Finds a loaded font by file derived key or by the font's own name.

        Matching ignores case and whitespace. The handle is re-scaled to size,
        the configured default size if None.
        """
        if size is None:
            size = self.config.default_font_size
        handle = self.store.get(name)
        if handle is None:
            handle = self.store.find_by_display_name(name)
        if handle is None:
            return None
        return handle.at_size(size)

    def require(self, name: str, size: float | None = None) -> FontHandle:
        handle = self.resolve(name, size)
        if handle is None:
            raise NotFoundError(f"No loaded font matches '{name}'")
        return handle

    def default_font(self, size: float | None = None) -> FontHandle | None:
        """The default font, None only if no font has loaded.

        The fallback chain is run again whenever the current default name
        does not resolve, so fonts loaded after construction are picked up.
        """
        handle = self.resolve(self.default_font_name, size)
        if handle is None and len(self.store):
            self._settle_default_font()
            handle = self.resolve(self.default_font_name, size)
        return handle

    def resolve_or_default(self, name: str | None, size: float | None = None) -> FontHandle | None:
        handle = self.resolve(name, size) if name else None
        if handle is None:
            handle = self.default_font(size)
        return handle

    def loaded_fonts(self) -> list[FontHandle]:
        return self.store.handles()

    def font_names(self) -> list[str]:
        """Sorted distinct display names of the loaded fonts."""
        return sorted({handle.display_name for handle in self.store.handles()})
