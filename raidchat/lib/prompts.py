"""
Dialogue prompt overrides.

Loads prompts.yaml so a deployment can reword the questions the dialogue
engine asks without touching the step tables. If no file exists, the
built-in prompts are used unchanged.

Example prompts.yaml:

    create:
      title: "Give the item a one-line title:"
      description: "Describe the impact in a sentence or two:"
    edit:
      item_id: "Which item? (e.g. R-12)"

Only the "create" and "edit" flows have prompts. Unknown flows or fields
are ignored with a warning so a typo never breaks a running chat.
"""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

PROMPTS_FILENAME = "prompts.yaml"

# flow name -> field names that can be reworded
OVERRIDABLE_FIELDS = {
    "create": ("type", "title", "description", "priority", "owner"),
    "edit": ("item_id", "status", "priority", "owner"),
}

PromptOverrides = dict[str, dict[str, str]]


def load_prompt_overrides(config_dir: Path | None) -> PromptOverrides:
    """Load prompts.yaml and return {flow: {field: prompt}}.

    Returns an empty mapping when config_dir is None, the file is missing,
    or the file cannot be parsed.
    """
    if config_dir is None:
        return {}

    path = config_dir / PROMPTS_FILENAME
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: expected a mapping at top level")
        return {}

    overrides: PromptOverrides = {}
    for flow, fields in data.items():
        if flow not in OVERRIDABLE_FIELDS:
            logger.warning(f"Ignoring prompts for unknown flow '{flow}'")
            continue
        if not isinstance(fields, dict):
            logger.warning(f"Ignoring prompts for '{flow}': expected a mapping")
            continue
        for field_name, prompt in fields.items():
            if field_name not in OVERRIDABLE_FIELDS[flow]:
                logger.warning(f"Ignoring prompt for unknown field '{flow}.{field_name}'")
                continue
            if not isinstance(prompt, str) or not prompt.strip():
                logger.warning(f"Ignoring empty prompt for '{flow}.{field_name}'")
                continue
            overrides.setdefault(flow, {})[field_name] = prompt.strip()

    return overrides
