from __future__ import annotations

import logging
from typing import Iterable

from .payloads import normalize_text
from .reference_data import ProjectReference

logger = logging.getLogger(__name__)


def resolve_project(
    property_name: str, projects: Iterable[ProjectReference]
) -> ProjectReference | None:
    """Find the Omie project whose name matches the spreadsheet property name.

    Names are compared after stripping accents, lower-casing and trimming;
    nothing fuzzier than that. The first match in upstream order wins, and a
    second match is reported as a data problem.
    """
    target = normalize_text(property_name)
    if not target:
        return None

    found: ProjectReference | None = None
    for project in projects:
        if normalize_text(project.name) != target:
            continue
        if found is None:
            found = project
            continue
        logger.warning(
            "Projetos Omie duplicados para %r: codigo=%s e codigo=%s; usando o primeiro.",
            property_name,
            found.code,
            project.code,
        )
    return found
