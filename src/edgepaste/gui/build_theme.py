"""
Builds theme.qss from theme.qss.j2 and design_tokens.py without external deps.
Usage:
    python -m edgepaste.gui.build_theme
"""
from __future__ import annotations
import re
from pathlib import Path
from typing import Dict, Optional

from . import design_tokens as T

HERE = Path(__file__).parent
TEMPLATE = HERE / "theme.qss.j2"
OUTPUT = HERE / "theme.qss"

# Very small Jinja-like replacement (no external deps)
TOKEN_PATTERN = re.compile(r"{{\s*([A-Z_]+)\s*}}")


def render_template(template_text: str, context: Dict[str, str]) -> str:
    def replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in context:
            raise KeyError(f"Missing token '{key}' in context")
        return str(context[key])

    return TOKEN_PATTERN.sub(replace, template_text)


def render() -> str:
    tpl = TEMPLATE.read_text(encoding="utf-8")
    context = {k: getattr(T, k) for k in dir(T) if k.isupper()}
    return render_template(tpl, context)


def build(output: Optional[Path] = None) -> Path:
    out_path = Path(output) if output is not None else OUTPUT
    out_path.write_text(render(), encoding="utf-8")
    return out_path


def main() -> None:
    out_path = build()
    print(f"Generated: {out_path}")


if __name__ == "__main__":
    main()
