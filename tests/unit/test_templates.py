import io
import json
import zipfile

from protohub.templates import TEMPLATES, get_template, list_templates, render_template_zip


def test_list_templates() -> None:
    listed = list_templates()
    assert [item["id"] for item in listed] == ["html-tailwind", "nextjs-tailwind"]
    assert set(listed[0]) == {"id", "name", "description"}


def test_templates_load_packaged_files() -> None:
    html = TEMPLATES["html-tailwind"]
    assert {"index.html", "script.js", "README.md", "CLAUDE.md"} <= set(html.files)
    nextjs = TEMPLATES["nextjs-tailwind"]
    assert "app/page.tsx" in nextjs.files
    assert "package.json" in nextjs.files


def test_get_template_unknown() -> None:
    assert get_template("vue-vite") is None


def test_render_template_zip_substitutes_placeholders() -> None:
    blob = render_template_zip(get_template("nextjs-tailwind"), "Team Dashboard", "team-dashboard")

    with zipfile.ZipFile(io.BytesIO(blob)) as archive:
        names = archive.namelist()
        package = json.loads(archive.read("package.json"))
        page = archive.read("app/page.tsx").decode("utf-8")

    assert "app/layout.tsx" in names
    assert package["name"] == "team-dashboard"
    assert "Team Dashboard" in page
    assert "{{PROJECT_NAME}}" not in page
