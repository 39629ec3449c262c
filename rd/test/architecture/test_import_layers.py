from __future__ import annotations

import pytest

from ._utils import iter_python_files, matches_prefix, parse_imports, rd_root

# Each layer may only import from the layers listed before it.
_FORBIDDEN = {
    "core": ("rd.output", "rd.platform", "rd.remote", "rd.services", "rd.cli"),
    "output": ("rd.platform", "rd.remote", "rd.services", "rd.cli"),
    "platform": ("rd.remote", "rd.services", "rd.cli"),
    "remote": ("rd.services", "rd.cli"),
    "services": ("rd.cli",),
}


@pytest.mark.parametrize("layer", sorted(_FORBIDDEN))
def test_layer_does_not_import_upwards(layer: str) -> None:
    root = rd_root()
    offenders: list[str] = []

    for file_path in iter_python_files(root / layer):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in _FORBIDDEN[layer]):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, f"{layer} dependency violations:\n" + "\n".join(offenders)
