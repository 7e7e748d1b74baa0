from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules


def _yaml_body(text: str) -> str:
    """Return the first ```yaml block of a markdown document, or `text` unchanged."""
    lines = text.splitlines()
    starts = [i for i, line in enumerate(lines) if line.strip().startswith("```yaml")]
    if not starts:
        return text

    body: list[str] = []
    for line in lines[starts[0] + 1 :]:
        if line.strip().startswith("```"):
            break
        body.append(line)
    return "\n".join(body)


def load_rules(path: Path) -> Rules:
    """
    Load the content lifecycle rules (remote, popup, circular, ops).

    Missing sections fall back to the built-in defaults.
    Raises FileNotFoundError if the file is missing.
    Raises ValueError if the YAML or the schema is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Content rules file not found at: {path}")

    try:
        data = yaml.safe_load(_yaml_body(path.read_text()))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in content rules file {path}: {e}") from e

    try:
        return Rules.model_validate(data or {})
    except ValidationError as e:
        raise ValueError(f"Content rules validation failed for {path}:\n{e}") from e
