"""Markdown template files with YAML frontmatter.

A template directory holds one reminder per file:

    ---
    type: behavior
    name: careful-deploy      # optional, defaults to the file stem
    ---
    Confirm the rollback plan for {context} before running anything.

The body (stripped) becomes the template prompt.
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from behavior_adjust.config import TemplateDefinition

logger = logging.getLogger(__name__)


def load_template_file(path: Path) -> tuple[str, TemplateDefinition] | None:
    """Parse a single template file. Returns None if it can't be used."""
    try:
        post = frontmatter.load(str(path))
    except Exception as e:
        logger.warning("Skipping template %s: %s", path, e)
        return None

    type_ = post.metadata.get("type")
    if not type_:
        logger.warning("Skipping template %s: missing 'type' in frontmatter", path)
        return None

    name = str(post.metadata.get("name") or path.stem)
    return name, TemplateDefinition(type=str(type_), prompt=post.content.strip())


def load_template_dir(directory: Path) -> dict[str, TemplateDefinition]:
    """Load every *.md template in directory, sorted by file name."""
    if not directory.is_dir():
        logger.warning("Template directory not found: %s", directory)
        return {}

    templates: dict[str, TemplateDefinition] = {}
    for md_file in sorted(directory.glob("*.md")):
        loaded = load_template_file(md_file)
        if loaded is None:
            continue
        name, template = loaded
        if name in templates:
            logger.warning("Duplicate template name '%s' in %s, keeping the later file", name, md_file)
        templates[name] = template
    logger.debug("Loaded %d templates from %s", len(templates), directory)
    return templates
