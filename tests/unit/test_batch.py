"""
Unit tests for file and directory conversion.
"""

from unittest.mock import AsyncMock, patch

import pytest

from codesque.batch import convert_directory, convert_file, source_to_puml
from codesque.component_index import load_index
from codesque.config import Settings
from codesque.errors import ParseError, RenderError


@pytest.fixture
def settings():
    return Settings(max_jobs=2)


@pytest.fixture
def source_dir(tmp_path):
    (tmp_path / "Main#run.code").write_text("Main#run(): start\n  Store#load(): fetch < item\n")
    (tmp_path / "Store#load.code").write_text("Store#load(): load\n  Db#query()\n")
    return tmp_path


def test_source_to_puml(source_dir):
    puml = source_to_puml(source_dir / "Main#run.code")

    assert puml.startswith("@startuml\n")
    assert "C1 -> C2: fetch" in puml


def test_source_to_puml_parse_error(tmp_path):
    source = tmp_path / "bad.code"
    source.write_text("run()\n")

    with pytest.raises(ParseError):
        source_to_puml(source)


def test_convert_file_writes_puml_and_image(source_dir, settings):
    with patch("codesque.batch.render_image", return_value=b"<svg/>") as render:
        conversion = convert_file(source_dir / "Main#run.code", settings, fmt="png")

    assert conversion.puml_path == source_dir / "Main#run.puml"
    assert conversion.image_path == source_dir / "Main#run.png"
    assert conversion.image_path.read_bytes() == b"<svg/>"
    assert conversion.puml_path.read_text().endswith("@enduml\n")
    assert render.call_args.args[2] == "png"


def test_batch_without_images_has_no_links(source_dir, settings):
    conversions = convert_directory(source_dir, settings, images=False)

    assert [c.source.name for c in conversions] == ["Main#run.code", "Store#load.code"]
    assert all(c.image_path is None for c in conversions)

    main_puml = (source_dir / "Main#run.puml").read_text()
    assert 'participant "load()" as C2' in main_puml
    assert "[[" not in main_puml

    # one alias counter for the whole batch
    store_puml = (source_dir / "Store#load.puml").read_text()
    assert 'participant "load()" as C3' in store_puml
    assert "C3 -> C4" in store_puml


def test_batch_renders_every_image(source_dir, settings):
    render = AsyncMock(return_value=b"<svg/>")
    with patch("codesque.batch.render_image_async", render):
        conversions = convert_directory(source_dir, settings)

    assert render.await_count == 2
    for conversion in conversions:
        assert conversion.image_path.suffix == ".svg"
        assert conversion.image_path.read_bytes() == b"<svg/>"


def test_batch_fails_when_any_render_fails(source_dir, settings):
    async def fake_render(puml, settings, fmt, source=None):
        if "Main#run" in source:
            raise RenderError("exploded", source)
        return b"<svg/>"

    with patch("codesque.batch.render_image_async", side_effect=fake_render):
        with pytest.raises(RenderError, match="exploded"):
            convert_directory(source_dir, settings)

    # the other job still ran to completion
    assert (source_dir / "Store#load.svg").read_bytes() == b"<svg/>"
    assert not (source_dir / "Main#run.svg").exists()


def test_batch_parse_error_stops_before_rendering(source_dir, settings):
    (source_dir / "Broken#x.code").write_text("Broken#x()\n  ???\n")
    render = AsyncMock(return_value=b"")

    with patch("codesque.batch.render_image_async", render):
        with pytest.raises(ParseError) as exc_info:
            convert_directory(source_dir, settings)

    assert exc_info.value.line_number == 2
    render.assert_not_awaited()


def test_empty_directory(tmp_path, settings):
    assert convert_directory(tmp_path, settings) == []


def test_batch_links_components_and_writes_index(source_dir, settings):
    index_path = source_dir / "out" / "components.json"
    with patch("codesque.batch.render_image_async", AsyncMock(return_value=b"<svg/>")):
        convert_directory(source_dir, settings, index_path=index_path)

    main_puml = (source_dir / "Main#run.puml").read_text()
    assert 'participant "load()" as C2 [[Store%23load.svg]]' in main_puml
    assert 'participant "run()" as C1 [[Main%23run.svg]]' in main_puml
    assert load_index(str(index_path)) == {
        "Main#run": "Main%23run.svg",
        "Store#load": "Store%23load.svg",
    }
