"""
File conversion: call-notation sources to ``.puml`` documents and images.

A batch converts every source in a directory. All documents are parsed
first (one shared alias counter, and, when images are rendered, one
component index built from the directory so diagrams link to each other);
then every image is rendered concurrently. Any failure fails the whole
batch, but only after every started render has finished.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from codesque.component_index import build_index, find_sources, save_index
from codesque.config import Settings
from codesque.errors import ParseError
from codesque.parser import AliasCounter, parse_text
from codesque.plantuml import render_image, render_image_async
from codesque.render import render_plantuml

logger = logging.getLogger(__name__)


@dataclass
class Conversion:
    source: Path
    puml_path: Path
    puml: str
    image_path: Optional[Path] = None


def output_stem(source: Path, suffix: str) -> Path:
    name = source.name[:-len(suffix)] if source.name.endswith(suffix) else source.stem
    return source.with_name(name)


def source_to_puml(source: Path, paths: Optional[Mapping[str, str]] = None,
                   aliases: Optional[AliasCounter] = None) -> str:
    """Read and parse one source file, returning its diagram document."""
    text = source.read_text(encoding="utf-8")
    try:
        roots = parse_text(text, paths=paths, aliases=aliases)
        return render_plantuml(roots)
    except ParseError as exc:
        logger.error("%s: %s", source, exc)
        raise


def convert_file(source: Path, settings: Settings, fmt: Optional[str] = None,
                 output: Optional[Path] = None,
                 paths: Optional[Mapping[str, str]] = None) -> Conversion:
    """Write ``<stem>.puml`` and the rendered image next to ``source``."""
    fmt = fmt or settings.output_format
    stem = output_stem(source, settings.source_suffix)
    puml = source_to_puml(source, paths=paths)

    puml_path = stem.with_name(stem.name + ".puml")
    puml_path.write_text(puml + "\n", encoding="utf-8")

    image_path = output or stem.with_name(f"{stem.name}.{fmt}")
    image_path.write_bytes(render_image(puml, settings, fmt, source=str(source)))
    logger.info("Rendered %s -> %s", source, image_path)
    return Conversion(source=source, puml_path=puml_path, puml=puml, image_path=image_path)


def prepare_batch(directory: Path, settings: Settings, fmt: str,
                  paths: Optional[Mapping[str, str]] = None) -> List[Conversion]:
    """Parse every source in ``directory`` and write its ``.puml`` file."""
    suffix = settings.source_suffix
    aliases = AliasCounter()
    conversions: List[Conversion] = []

    for source in find_sources(directory, suffix):
        puml = source_to_puml(source, paths=paths, aliases=aliases)
        stem = output_stem(source, suffix)
        puml_path = stem.with_name(stem.name + ".puml")
        puml_path.write_text(puml + "\n", encoding="utf-8")
        conversions.append(Conversion(
            source=source, puml_path=puml_path, puml=puml,
            image_path=stem.with_name(f"{stem.name}.{fmt}"),
        ))
        logger.debug("Wrote %s", puml_path)

    return conversions


async def render_batch(conversions: List[Conversion], settings: Settings, fmt: str) -> None:
    semaphore = asyncio.Semaphore(settings.max_jobs)

    async def render_one(conversion: Conversion) -> None:
        async with semaphore:
            data = await render_image_async(conversion.puml, settings, fmt,
                                            source=str(conversion.source))
        conversion.image_path.write_bytes(data)
        logger.info("Rendered %s -> %s", conversion.source, conversion.image_path)

    results = await asyncio.gather(
        *(render_one(c) for c in conversions), return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    for failure in failures:
        logger.error("%s", failure)
    if failures:
        raise failures[0]


def convert_directory(directory: Path, settings: Settings, fmt: Optional[str] = None,
                      images: bool = True,
                      index_path: Optional[Path] = None) -> List[Conversion]:
    """Convert every source in ``directory``.

    Participants link to the images of components that have their own
    source, so links are only added when images are rendered. The index
    used for those links is written to ``index_path`` when given.
    """
    fmt = fmt or settings.output_format
    paths: Dict[str, str] = build_index(directory, fmt, settings.source_suffix) if images else {}
    if index_path is not None:
        save_index(paths, str(index_path))
        logger.info("Wrote component index %s", index_path)
    conversions = prepare_batch(directory, settings, fmt, paths=paths)
    if not conversions:
        logger.warning("No %s sources found in %s", settings.source_suffix, directory)
        return conversions

    if images:
        asyncio.run(render_batch(conversions, settings, fmt))
    else:
        for conversion in conversions:
            conversion.image_path = None
    return conversions
