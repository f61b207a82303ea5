"""
Configuration values consumed by the font resolver, layout and CLI.

Loading and merging configuration files is left to the caller, from_mapping()
accepts the already parsed, nested mapping.
"""

import logging
from typing import Any, Mapping

from datatrees import datatree, dtfield

from blocktext.alignment import Alignment

log = logging.getLogger(__name__)

DEFAULT_MESSAGE = 'The quick brown fox\n jumps over\n the lazy dog.'


@datatree(frozen=True)
class BlockTextConfig:
    """Defaults for font lookup, text rendering and font directory scanning."""

    font_dir: str = dtfield(default='fonts', doc='Primary font directory.')
    default_font: str = dtfield(default='arial', doc='Font used when none is requested.')
    default_font_size: float = dtfield(default=16, doc='Point size when none is requested.')
    default_alignment: str = dtfield(default='left', doc='Alignment token, prefix matched.')
    extra_scan_dirs: tuple = dtfield(
        default=(), doc='Font files or directories to create proxies for on scan.')
    scan_workers: int | None = dtfield(
        default=None, doc='Thread count for parallel font loading, None for dask default.')
    default_message: str = dtfield(default=DEFAULT_MESSAGE)

    # Nested mapping paths understood by from_mapping().
    MAPPING_KEYS = {
        ('defaults', 'font'): 'default_font',
        ('defaults', 'fontsize'): 'default_font_size',
        ('defaults', 'alignment'): 'default_alignment',
        ('defaults', 'message'): 'default_message',
        ('fontmanager', 'fontDir'): 'font_dir',
        ('fontmanager', 'extraScanDirs'): 'extra_scan_dirs',
        ('fontmanager', 'scanWorkers'): 'scan_workers',
    }

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> 'BlockTextConfig':
        """Builds a config from a nested mapping such as a parsed config file.

        e.g. {'defaults': {'font': 'arial', 'fontsize': 16}}
        Missing keys keep their defaults, unknown keys are ignored.
        """
        kwargs = {}
        for path, field_name in cls.MAPPING_KEYS.items():
            node = mapping
            for part in path:
                if not isinstance(node, Mapping) or part not in node:
                    node = None
                    break
                node = node[part]
            if node is None:
                continue
            if field_name == 'extra_scan_dirs':
                node = (node,) if isinstance(node, str) else tuple(node)
            kwargs[field_name] = node
        return cls(**kwargs)

    def alignment(self) -> Alignment:
        """The configured default alignment, LEFT if the token is not recognized."""
        alignment = Alignment.of(self.default_alignment)
        if alignment is None:
            log.warning(
                f"Unknown default alignment '{self.default_alignment}', using LEFT.")
            return Alignment.LEFT
        return alignment
