import io

import pytest
from PIL import Image

from icopack.config import ResolutionSpec, Settings
from icopack.container import read_directory
from icopack.core import IconBuilder
from icopack.errors import AlreadyExistsError, DimensionError, InputError

from conftest import random_rgba


@pytest.fixture
def builder():
    return IconBuilder(settings=Settings())


def test_build_default_container(builder, primary_png, tmp_path):
    dest = builder.build(tmp_path / "app.ico", primary_png)
    data = dest.read_bytes()
    header, entries = read_directory(data)

    assert header.count == 5
    assert [e.width for e in entries] == [0, 72, 48, 32, 16]
    assert len(data) == 6 + 16 * 5 + sum(e.size for e in entries)
    for current, following in zip(entries, entries[1:]):
        assert following.offset == current.offset + current.size

    for entry in entries:
        img = Image.open(io.BytesIO(data[entry.offset:entry.offset + entry.size]))
        assert img.size == (entry.resolution, entry.resolution)
        assert img.mode == "RGBA"


def test_build_with_secondary_image(builder, primary_png, secondary_png, tmp_path):
    dest = builder.build(tmp_path / "app.ico", primary_png, secondary_png)
    data = dest.read_bytes()
    _, entries = read_directory(data)
    last = entries[-1]
    img = Image.open(io.BytesIO(data[last.offset:last.offset + last.size]))
    with Image.open(secondary_png) as expected:
        assert img.tobytes() == expected.tobytes()


def test_build_is_deterministic(builder, primary_png, tmp_path):
    first = builder.build(tmp_path / "a.ico", primary_png)
    second = builder.build(tmp_path / "b.ico", primary_png)
    assert first.read_bytes() == second.read_bytes()


def test_build_rejects_bad_primary_before_writing(builder, write_png, tmp_path):
    bad = write_png(Image.new("RGB", (256, 256)), "rgb.png")
    dest = tmp_path / "app.ico"
    with pytest.raises(DimensionError):
        builder.build(dest, bad)
    assert not dest.exists()


def test_build_rejects_bad_secondary(builder, primary_png, write_png, tmp_path):
    bad = write_png(random_rgba(32), "icon32.png")
    dest = tmp_path / "app.ico"
    with pytest.raises(DimensionError):
        builder.build(dest, primary_png, bad)
    assert not dest.exists()


def test_build_missing_source(builder, tmp_path):
    with pytest.raises(InputError):
        builder.build(tmp_path / "app.ico", tmp_path / "missing.png")


def test_build_refuses_existing_destination(builder, primary_png, tmp_path):
    dest = tmp_path / "app.ico"
    dest.write_bytes(b"existing")
    with pytest.raises(AlreadyExistsError):
        builder.build(dest, primary_png)
    assert dest.read_bytes() == b"existing"


def test_build_custom_resolutions(write_png, tmp_path):
    source = write_png(random_rgba(64, seed=4), "icon64.png")
    builder = IconBuilder(settings=Settings(resolutions=ResolutionSpec((64, 24))))
    dest = builder.build(tmp_path / "small.ico", source)
    header, entries = read_directory(dest.read_bytes())
    assert header.count == 2
    assert [e.width for e in entries] == [64, 24]


def test_verbose_reports_each_resolution(primary_png, tmp_path, capsys):
    builder = IconBuilder(settings=Settings(), verbose=True)
    builder.build(tmp_path / "app.ico", primary_png)
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 5
    assert out[0].startswith("256x256:")
    assert "resampled" in out[1]
