"""
Tests for the headless command line export.
"""

import zipfile

import pytest

import icon_studio
from IS_Libs.ProjStoreLib.project_store import create_project_file, load_project_state


@pytest.fixture
def source_file(temp_project_dir, png_bytes):
    path = temp_project_dir / "logo.png"
    path.write_bytes(png_bytes)
    return path


def test_exports_android_folder(source_file, temp_project_dir, capsys):
    out_dir = temp_project_dir / "out"

    code = icon_studio.main([str(source_file), "--export", str(out_dir), "--shape", "circle", "--padding", "16"])

    assert code == 0
    assert (out_dir / "android/res/drawable-xxxhdpi/ic_launcher.png").is_file()
    assert capsys.readouterr().out.count("Wrote") == 5


def test_exports_zip_with_ios(source_file, temp_project_dir):
    out_dir = temp_project_dir / "zipped"

    code = icon_studio.main([str(source_file), "--export", str(out_dir), "--zip", "--ios", "--store", "--sharpen"])

    assert code == 0
    with zipfile.ZipFile(out_dir / "android_icons.zip") as zf:
        names = zf.namelist()
    assert len(names) == 5 + 1 + 15
    assert "ios/AppIcon.appiconset/AppIcon60x60@3x.png" in names


def test_existing_files_fail_without_overwrite(source_file, temp_project_dir, capsys):
    out_dir = temp_project_dir / "again"
    assert icon_studio.main([str(source_file), "--export", str(out_dir)]) == 0

    assert icon_studio.main([str(source_file), "--export", str(out_dir)]) == 1
    assert "FAILED" in capsys.readouterr().err

    assert icon_studio.main([str(source_file), "--export", str(out_dir), "--overwrite"]) == 0


def test_missing_source_file(temp_project_dir):
    code = icon_studio.main([str(temp_project_dir / "missing.png"), "--export", str(temp_project_dir)])
    assert code == 1


def test_invalid_transform_value(source_file, temp_project_dir):
    with pytest.raises(SystemExit) as exc_info:
        icon_studio.main([str(source_file), "--export", str(temp_project_dir), "--padding", "-1"])
    assert exc_info.value.code == 2


def test_export_requires_source(temp_project_dir):
    with pytest.raises(SystemExit):
        icon_studio.main(["--export", str(temp_project_dir)])


def test_collect_transform_changes():
    args = icon_studio.build_parser().parse_args(["--rotation", "90", "--text", "Hi", "--background", "#000"])
    assert icon_studio.collect_transform_changes(args) == {
        "rotation": 90.0,
        "text_content": "Hi",
        "background_color": "#000",
    }


@pytest.mark.parametrize(
    "option, value",
    [("--scale", "nan"), ("--rotation", "inf"), ("--x-offset", "nan"), ("--padding", "nan"), ("--font-size", "inf")],
)
def test_non_finite_values_are_rejected(source_file, temp_project_dir, option, value, capsys):
    out_dir = temp_project_dir / "out"

    with pytest.raises(SystemExit) as exc_info:
        icon_studio.main([str(source_file), "--export", str(out_dir), option, value])

    assert exc_info.value.code == 2
    assert "finite" in capsys.readouterr().err
    assert not out_dir.exists()


def test_save_project_after_export(source_file, temp_project_dir, capsys):
    out_dir = temp_project_dir / "out"

    code = icon_studio.main(
        [
            str(source_file),
            "--export", str(out_dir),
            "--rotation", "30",
            "--ios",
            "--projects-dir", str(temp_project_dir),
            "--save-project", "Launcher icon",
        ]
    )

    assert code == 0
    project_file = temp_project_dir / "Projects" / "Launcher_icon.isproj"
    assert project_file.is_file()
    assert f"Saved project {project_file}" in capsys.readouterr().out

    origin, model, options = load_project_state(project_file)
    assert origin == str(source_file)
    assert model.rotation == 30
    assert options.platforms == ["android", "ios"]


def test_list_projects(temp_project_dir, capsys):
    create_project_file(temp_project_dir, "Beta")
    create_project_file(temp_project_dir, "Alpha")

    code = icon_studio.main(["--list-projects", "--projects-dir", str(temp_project_dir)])

    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.split("\t")[0] for line in lines] == ["Alpha", "Beta"]


def test_list_projects_when_none_saved(temp_project_dir, capsys):
    assert icon_studio.main(["--list-projects", "--projects-dir", str(temp_project_dir)]) == 0
    assert capsys.readouterr().out == ""


def test_export_only_filter_is_not_selectable(source_file, temp_project_dir):
    with pytest.raises(SystemExit) as exc_info:
        icon_studio.main([str(source_file), "--export", str(temp_project_dir), "--filter", "sharpen"])
    assert exc_info.value.code == 2
