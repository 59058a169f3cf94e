"""
Loader for the static JSON content produced by the scraping scripts.

Layout:
    <content_dir>/<category>/problems.json   list of problems
    <content_dir>/<category>/mcq.json        list of MCQ cards (optional)
"""

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from vibedeck.application.catalog import Catalog
from vibedeck.domain.constants import CATEGORIES
from vibedeck.domain.content.models import MCQModel, ProblemModel
from vibedeck.domain.errors import ContentError

logger = logging.getLogger(__name__)

_problems_adapter = TypeAdapter(list[ProblemModel])
_mcqs_adapter = TypeAdapter(list[MCQModel])


def _read_json(path: Path) -> object | None:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        logger.warning(f"Skipping unreadable content file {path}: {e}")
        return None


def load_problems(path: Path) -> list[ProblemModel]:
    """
    Parse a problems.json file.

    A missing or non-JSON file yields an empty list; JSON that does not match
    the problem schema raises ContentError.
    """
    data = _read_json(path)
    if data is None:
        return []
    try:
        return _problems_adapter.validate_python(data)
    except ValidationError as e:
        raise ContentError(str(path), f"invalid problems: {e.error_count()} errors") from e


def load_mcqs(path: Path) -> list[MCQModel]:
    data = _read_json(path)
    if data is None:
        return []
    try:
        return _mcqs_adapter.validate_python(data)
    except ValidationError as e:
        raise ContentError(str(path), f"invalid MCQs: {e.error_count()} errors") from e


def load_catalog(content_dir: Path | None) -> Catalog:
    """Build a Catalog from every known category under content_dir."""
    if content_dir is None or not content_dir.is_dir():
        logger.warning(f"Content directory {content_dir} not found; catalog is empty")
        return Catalog()

    problems: dict[str, list[ProblemModel]] = {}
    mcqs: dict[str, list[MCQModel]] = {}
    for category in CATEGORIES:
        category_dir = content_dir / category
        if not category_dir.is_dir():
            continue
        problems[category] = load_problems(category_dir / "problems.json")
        mcqs[category] = load_mcqs(category_dir / "mcq.json")

    return Catalog.from_content(problems, mcqs)
