"""
Opaque executable payload shipped with every task.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from g_flite.conf import JS_NAME, WASM_NAME
from g_flite.core.exceptions import WorkspaceIOError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Payload:
    """The flite JavaScript loader and WebAssembly module, as raw bytes."""

    js_name: str
    js_bytes: bytes
    wasm_name: str
    wasm_bytes: bytes

    @classmethod
    def from_dir(cls, assets_dir: Union[str, Path]) -> 'Payload':
        """
        Load the payload files from a directory.

        Raises:
            WorkspaceIOError: If either file is missing or unreadable
        """
        assets_dir = Path(assets_dir)
        try:
            js_bytes = (assets_dir / JS_NAME).read_bytes()
            wasm_bytes = (assets_dir / WASM_NAME).read_bytes()
        except OSError as e:
            raise WorkspaceIOError(f"Cannot load payload from {assets_dir}: {e}") from e

        logger.debug(
            f"Loaded payload from {assets_dir} "
            f"({len(js_bytes)} + {len(wasm_bytes)} bytes)"
        )
        return cls(JS_NAME, js_bytes, WASM_NAME, wasm_bytes)

    def write_to(self, directory: Path):
        """Write both files unchanged into directory."""
        (directory / self.js_name).write_bytes(self.js_bytes)
        (directory / self.wasm_name).write_bytes(self.wasm_bytes)
