"""
Command line access to the font resolver and block text layout.

    blocktext fonts
    blocktext render --font arial --size 16 --alignment c "Hello\\nWorld"
"""

import argparse
import logging
import sys
from typing import Any, Optional, Tuple

from datatrees import datatree, dtfield

from blocktext.alignment import Alignment
from blocktext.config import BlockTextConfig
from blocktext.emitter import CollectingEmitter, paste, preview
from blocktext.font_resolver import FontResolver
from blocktext.glyph import GlyphRasterizer
from blocktext.layout import LayoutEngine

log = logging.getLogger(__name__)

NEWLINE_ESCAPE = '\\n'


def parse_base(base_str: str) -> Optional[Tuple[int, int, int]]:
    """Parses a base position string (e.g., "10,64,-3") into an (x, y, z) tuple."""
    try:
        parts = [int(p.strip()) for p in base_str.split(',')]
        if len(parts) != 3:
            raise ValueError("Base position must have 3 (x,y,z) components.")
        return tuple(parts)
    except ValueError as e:
        print(f"Error parsing base position '{base_str}': {e}", file=sys.stderr)
        return None


def add_bool_arg(parser, name, help_text, default=False):
    parser.add_argument(
        f"--{name}",
        action="store_true",
        help=help_text
    )
    parser.add_argument(
        f"--no-{name}",
        action="store_false",
        dest=name.replace('-', '_'),
        help=f"Disable: {help_text}"
    )
    parser.set_defaults(**{name.replace('-', '_'): default})


@datatree
class BlockTextMainRunner:
    """Parses arguments and runs the fonts / render commands."""
    argv: list[str] | None = None
    out: Any = None
    default_block: str = 'diamond_block'
    default_format: str = 'preview'
    _args: argparse.Namespace | None = dtfield(default=None, init=False)
    parser: argparse.ArgumentParser | None = dtfield(
        self_default=lambda s: s._make_parser(), init=False)

    @property
    def args(self) -> argparse.Namespace:
        if self._args is None:
            self.parse_args()
        return self._args

    def _make_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog='blocktext', description="Turn text into block positions.")

        # --- Font Sources ---
        parser.add_argument(
            "--font-dir", type=str, default=None,
            help="Primary font directory (default: ./fonts).")
        parser.add_argument(
            "--extra-dir", action="append", default=[],
            help="Font file or directory to create a proxy for. May be repeated.")
        parser.add_argument(
            "--default-font", type=str, default=None, help="Font used when none is given.")
        parser.add_argument(
            "--default-size", type=float, default=None, help="Font size used when none is given.")
        parser.add_argument(
            "--default-alignment", type=str, default=None,
            help="Alignment used when none is given.")
        add_bool_arg(
            parser, "scan-extra-dirs", "Create proxies for fonts in the extra dirs.", default=True)
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Log debug output.")

        commands = parser.add_subparsers(dest="command", required=True)
        commands.add_parser("fonts", aliases=["loadedfonts"], help="List the loaded fonts.")

        render = commands.add_parser("render", aliases=["ttb"], help="Lay out text as blocks.")
        render.add_argument("--font", "-f", type=str, default=None, help="Font name.")
        render.add_argument("--size", "-s", type=float, default=None, help="Font size.")
        render.add_argument(
            "--alignment", "-a", type=str, default=None,
            help="left, center or right; any prefix works.")
        render.add_argument(
            "--block", type=str, default=self.default_block, help="Block kind to place.")
        render.add_argument(
            "--base", type=str, default="0,0,0", help="Base position as 'x,y,z'.")
        render.add_argument(
            "--format", type=str, choices=['preview', 'coords'], default=self.default_format,
            help="Print a text preview or the x y z of every block.")
        render.add_argument(
            "message", nargs="*",
            help=f"Text to render, '{NEWLINE_ESCAPE}' starts a new line.")
        return parser

    def parse_args(self):
        self._args = self.parser.parse_args(self.argv)

    def _print(self, *args, **kwargs):
        print(*args, file=self.out if self.out is not None else sys.stdout, **kwargs)

    def make_config(self) -> BlockTextConfig:
        overrides = {
            'font_dir': self.args.font_dir,
            'default_font': self.args.default_font,
            'default_font_size': self.args.default_size,
            'default_alignment': self.args.default_alignment,
        }
        kwargs = {k: v for k, v in overrides.items() if v is not None}
        if not self.args.scan_extra_dirs:
            kwargs["extra_scan_dirs"] = ()
        elif self.args.extra_dir:
            kwargs["extra_scan_dirs"] = tuple(self.args.extra_dir)
        return BlockTextConfig(**kwargs)

    def run(self) -> int:
        logging.basicConfig(level=logging.DEBUG if self.args.verbose else logging.WARNING)
        resolver = FontResolver(self.make_config())
        if self.args.command in ('fonts', 'loadedfonts'):
            return self.list_fonts(resolver)
        return self.render(resolver)

    def list_fonts(self, resolver: FontResolver) -> int:
        names = resolver.font_names()
        if not names:
            self._print("Fonts: None.")
        else:
            self._print(f"Fonts({len(names)}): {', '.join(names)}.")
        return 0

    def render(self, resolver: FontResolver) -> int:
        base = parse_base(self.args.base)
        if base is None:
            return 2

        font = resolver.resolve_or_default(self.args.font, self.args.size)
        if font is None:
            self._print("Unknown font.")
            return 0

        alignment = None
        if self.args.alignment:
            alignment = Alignment.of(self.args.alignment)
            if alignment is None:
                log.warning(f"Unknown alignment '{self.args.alignment}', using the default.")
        if alignment is None:
            alignment = resolver.config.alignment()

        message = ' '.join(self.args.message) or resolver.config.default_message
        message = message.replace(NEWLINE_ESCAPE, '\n')

        engine = LayoutEngine(GlyphRasterizer())
        block_string = engine.build_string(message, font, alignment)
        emitter = CollectingEmitter()
        count = paste(block_string, emitter, engine, base=base,
                      block_kind=self.args.block, context='blocktext')
        log.info(f"Placed {count} {self.args.block} blocks using {font.display_name}")

        if self.args.format == 'coords':
            for x, y, z in emitter.positions():
                self._print(f"{x} {y} {z}")
        else:
            self._print(preview(emitter.as_array()))
        return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the blocktext console script."""
    return BlockTextMainRunner(argv).run()


if __name__ == "__main__":
    sys.exit(main())
