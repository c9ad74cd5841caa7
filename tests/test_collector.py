"""End-to-end tests for collecting a content directory."""

from __future__ import annotations

import asyncio
import json
import typing as typ
from textwrap import dedent

import pytest

from content_collector import ContentCollector, build_hierarchy, create_collector
from content_collector.errors import (
    MissingDependencyError,
    SectionHierarchyError,
)
from content_collector.models import Section
from content_collector.plugins import ContentPlugin, LoaderPlugin, ProcessorPlugin

if typ.TYPE_CHECKING:
    from pathlib import Path


def write_site(root: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (relative path -> text) under ``root``."""
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(text), encoding="utf-8")
    return root


@pytest.fixture
def site(tmp_path: Path) -> Path:
    return write_site(
        tmp_path / "site",
        {
            "site.yml": "title: Example\nlanguage: en\n",
            "theme.yml": "colors:\n  primary: '#123456'\n",
            "pages/home/1-Hero.md": """\
                ---
                component: Hero
                props:
                  headline: Welcome
                ---
                # Welcome
                """,
            "pages/home/2-Features.md": "## Features\n",
            "pages/home/2.1-Speed.md": "Fast.\n",
            "pages/home/10-Footer-Note.md": "Bye.\n",
            "pages/home/_draft.md": "Not ready.\n",
            "pages/home/notes.txt": "ignored\n",
            "pages/about/page.yml": "title: About us\n",
            "pages/about/1-Intro.md": "Hello.\n",
            "pages/about/team/1-Members.md": "Ada, Grace.\n",
            "pages/@header/1-Nav.md": "[Home](/)\n",
            "pages/secret/page.yml": "hidden: true\n",
            "pages/secret/1-Hidden.md": "Shh.\n",
            "pages/.cache/1-Junk.md": "junk\n",
        },
    )


def _ids(sections: list[Section]) -> list[str]:
    return [section.id for section in sections]


def test_collects_pages_sections_and_regions(site: Path) -> None:
    output = create_collector({"environment": "development"}).collect_sync(site)

    assert [page.route for page in output.pages] == ["/", "/about"], (
        "home should lead, hidden and dot directories should be skipped"
    )
    assert output.config == {"title": "Example", "language": "en"}
    assert output.theme == {"colors": {"primary": "#123456"}}
    assert output.errors == [], f"unexpected errors {output.errors!r}"

    home = output.get_page("/")
    assert home is not None
    assert _ids(home.sections) == ["1", "2", "10"], "ids should sort numerically"
    assert _ids(home.sections[1].subsections) == ["2.1"], "2.1 nests under 2"
    hero = home.sections[0]
    assert hero.title == "Hero"
    assert hero.component == "Hero"
    assert hero.props == {"headline": "Welcome"}
    assert hero.content["content"][0]["type"] == "heading"

    about = output.get_page("/about")
    assert about is not None
    assert about.metadata == {"title": "About us"}, "page.yml becomes metadata"
    assert [page.route for page in about.subpages] == ["/about/team"]
    assert _ids(about.subpages[0].sections) == ["1"]

    assert set(output.regions) == {"header"}, "@header should become a region"
    assert output.regions["header"].route == "/@header"


def test_output_serializes_to_expected_shape(site: Path) -> None:
    payload = create_collector({"environment": "production"}).collect_sync(site)
    data = json.loads(json.dumps(payload.to_dict()))

    assert set(data) == {"pages", "config", "theme", "header"}, (
        f"unexpected top-level keys {sorted(data)!r}"
    )
    about = data["pages"][1]
    assert about["route"] == "/about"
    assert about["title"] == "About us", "metadata should be flattened"
    assert about["subpages"][0]["route"] == "/about/team"
    assert "subpages" not in data["pages"][0], "empty subpages are omitted"


def test_collection_is_idempotent(site: Path) -> None:
    collector = create_collector({"environment": "development"})
    first = collector.collect_sync(site).to_dict()
    second = collector.collect_sync(site).to_dict()
    assert first == second, "collecting the same tree twice should match"


def test_missing_parent_section_fails_only_that_page(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "pages/home/1-Hero.md": "Hi\n",
            "pages/broken/1-Intro.md": "Intro\n",
            "pages/broken/3.1-Orphan.md": "Lost\n",
        },
    )
    output = create_collector({"environment": "development"}).collect_sync(root)

    assert [page.route for page in output.pages] == ["/"], "broken page dropped"
    assert output.errors is not None
    assert len(output.errors) == 1, f"unexpected errors {output.errors!r}"
    record = output.errors[0]
    assert record["page"] == "broken"
    assert record["message"] == "Parent section 3 not found for 3.1"
    assert "SectionHierarchyError" in record["stack"], "development keeps stacks"


def test_invalid_front_matter_fails_page_with_section_name(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {"pages/home/1-Bad.md": "---\ncomponent: [oops\n---\nBody\n"},
    )
    output = create_collector({"environment": "staging"}).collect_sync(root)

    assert output.pages == []
    assert output.errors is not None
    assert output.errors[0]["message"].startswith(
        "Failed to process section 1-Bad.md: Invalid front matter"
    ), f"unexpected errors {output.errors!r}"
    assert "stack" not in output.errors[0], "stacks are development only"


def test_failed_subpage_is_dropped_and_parent_kept(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "pages/docs/1-Index.md": "Docs\n",
            "pages/docs/guide/1-Start.md": "Start\n",
            "pages/docs/broken/1-Bad.md": "---\nprops: nope\n---\n",
        },
    )
    output = create_collector({"environment": "development"}).collect_sync(root)

    docs = output.get_page("/docs")
    assert docs is not None, "the parent page should survive"
    assert [page.route for page in docs.subpages] == ["/docs/guide"]
    assert output.errors is not None
    assert output.errors[0]["page"] == "broken"
    assert output.errors[0]["message"].startswith("Failed to process subpage: "), (
        f"unexpected errors {output.errors!r}"
    )


def test_require_numeric_prefix_skips_plain_files(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {"pages/home/1-Hero.md": "Hi\n", "pages/home/About.md": "About\n"},
    )
    strict = create_collector(
        {"requireNumericPrefix": True, "environment": "development"}
    ).collect_sync(root)
    lenient = create_collector({"environment": "development"}).collect_sync(root)

    assert _ids(strict.pages[0].sections) == ["1"], "plain files are skipped"
    assert _ids(lenient.pages[0].sections) == ["1", "About"], (
        "without a prefix the title is the id"
    )


def test_duplicate_section_ids_fail_the_page(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {"pages/home/1-First.md": "a\n", "pages/home/1-Second.md": "b\n"},
    )
    output = create_collector({"environment": "development"}).collect_sync(root)

    assert output.pages == []
    assert output.errors is not None
    assert output.errors[0]["message"] == "Duplicate section id 1"


def test_production_omits_error_log(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/2.1-Orphan.md": "x\n"})
    output = create_collector({"environment": "production"}).collect_sync(root)

    assert output.pages == []
    assert output.errors is None, "production output carries no errors"
    assert "errors" not in output.to_dict()


def test_environment_variable_selects_production(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CONTENT_COLLECTOR_ENV", "production")
    root = write_site(tmp_path, {"pages/home/1-Hi.md": "x\n"})
    assert create_collector().collect_sync(root).errors is None


def test_missing_pages_directory_gives_no_pages(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"site.yml": "title: Empty\n"})
    output = create_collector({"environment": "development"}).collect_sync(root)
    assert output.pages == []
    assert output.config == {"title": "Empty"}
    assert output.theme == {}, "missing theme.yml gives an empty mapping"


def test_missing_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="not a readable directory"):
        create_collector().collect_sync(tmp_path / "nowhere")


def test_section_input_is_loaded_into_props(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "data/team.json": '{"members": ["Ada"]}',
            "pages/home/1-Team.md": "---\ninput: data/team.json\n---\n# Team\n",
            "pages/home/2-Missing.md": "---\ninput: data/none.json\n---\n",
        },
    )
    output = create_collector({"environment": "development"}).collect_sync(root)

    team, missing = output.pages[0].sections
    assert team.props == {"input": {"members": ["Ada"]}}, "loader output expected"
    assert missing.props == {}, "failed loads leave props untouched"
    assert output.errors is not None
    assert output.errors[0]["plugin"] == "DataLoaderPlugin"


def test_disabled_data_loader_leaves_input_unresolved(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "data/team.json": "[]",
            "pages/home/1-Team.md": "---\ninput: data/team.json\n---\n",
        },
    )
    output = create_collector(
        {"dataLoader": False, "environment": "development"}
    ).collect_sync(root)
    assert output.pages[0].sections[0].props == {}


class MarkerA(ProcessorPlugin):
    async def process_content(self, document, context):
        document.setdefault("markers", []).append("A")
        return document


class MarkerB(ProcessorPlugin):
    def process_content(self, document, context):
        assert context.current_section is not None, "section path should be set"
        document.setdefault("markers", []).append("B")
        return document


def test_processors_run_in_dependency_order(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Hi.md": "x\n"})
    collector = create_collector(
        {
            "environment": "development",
            "plugins": [(MarkerB(), ["MarkerA"]), MarkerA()],
        }
    )
    output = collector.collect_sync(root)
    assert output.pages[0].sections[0].content["markers"] == ["A", "B"]


def test_missing_plugin_dependency_is_fatal(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Hi.md": "x\n"})
    collector = ContentCollector({"environment": "development"})
    collector.use(MarkerB(), ["MarkerA"])

    with pytest.raises(MissingDependencyError, match="MarkerA"):
        collector.collect_sync(root)


class Exploding(ContentPlugin):
    async def before_collect(self, context):
        raise RuntimeError("setup failed")


class Recording(ContentPlugin):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    async def before_collect(self, context):
        self.calls.append("before")

    async def after_collect(self, context):
        self.calls.append("after")


def test_lifecycle_hooks_run_once_per_collect(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Hi.md": "x\n"})
    recorder = Recording()
    ContentCollector().use(recorder).collect_sync(root)
    assert recorder.calls == ["before", "after"]


def test_lifecycle_hook_failure_is_fatal(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Hi.md": "x\n"})
    collector = ContentCollector().use(Exploding())
    with pytest.raises(RuntimeError, match="setup failed"):
        collector.collect_sync(root)


def test_custom_parser_is_used(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Hi.md": "---\ncomponent: X\n---\nraw"})
    collector = ContentCollector(
        parser=lambda text: {"type": "doc", "content": [{"type": "raw", "text": text}]}
    )
    output = collector.collect_sync(root)
    assert output.pages[0].sections[0].content["content"][0]["text"] == "raw"


@pytest.mark.asyncio
async def test_concurrent_collections_do_not_share_errors(tmp_path: Path) -> None:
    good = write_site(tmp_path / "good", {"pages/home/1-Hi.md": "x\n"})
    bad = write_site(tmp_path / "bad", {"pages/home/2.1-Orphan.md": "x\n"})
    collector = create_collector({"environment": "development"})

    good_output, bad_output = await asyncio.gather(
        collector.collect(good), collector.collect(bad)
    )

    assert good_output.errors == [], "errors from one run must not leak"
    assert bad_output.errors is not None
    assert len(bad_output.errors) == 1


def _section(section_id: str) -> Section:
    return Section(
        id=section_id,
        title=section_id,
        component=None,
        config=None,
        props={},
        content={"type": "doc", "content": []},
    )


def test_build_hierarchy_nests_deeply_and_sorts() -> None:
    sections = [_section(i) for i in ("2.1.1", "10", "2", "2.10", "2.1", "1")]
    top = build_hierarchy(sections)

    assert _ids(top) == ["1", "2", "10"]
    assert _ids(top[1].subsections) == ["2.1", "2.10"]
    assert _ids(top[1].subsections[0].subsections) == ["2.1.1"]


def test_build_hierarchy_rejects_orphans() -> None:
    with pytest.raises(SectionHierarchyError, match="Parent section 4 not found"):
        build_hierarchy([_section("1"), _section("4.2")])


def _flatten(sections: list[Section]) -> list[str]:
    ids: list[str] = []
    for section in sections:
        ids.append(section.id)
        ids.extend(_flatten(section.subsections))
    return ids


def test_pre_order_walk_follows_filename_order(tmp_path: Path) -> None:
    names = ["3-C.md", "1.2-B.md", "1-A.md", "1.10-D.md", "1.2.1-E.md", "10-F.md"]
    root = write_site(tmp_path, {f"pages/home/{name}": "x\n" for name in names})
    output = create_collector({"environment": "development"}).collect_sync(root)

    assert _flatten(output.pages[0].sections) == [
        "1",
        "1.2",
        "1.2.1",
        "1.10",
        "3",
        "10",
    ], "pre-order ids should follow numeric filename order"


def test_section_without_front_matter_uses_whole_body(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Plain.md": "# Plain\n\nText.\n"})
    section = create_collector().collect_sync(root).pages[0].sections[0]

    assert section.component is None, "no front matter means no component"
    assert section.props == {}, "no front matter means empty props"
    assert [node["type"] for node in section.content["content"]] == [
        "heading",
        "paragraph",
    ], "the whole file should be parsed as the body"


def test_page_sections_list_selects_and_orders_files(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "pages/home/page.yml": """\
                title: Home
                sections:
                  - 2-Features.md
                  - 1-Hero.md
                  - 1.2-Second.md
                  - 1.1-First.md
                """,
            "pages/home/1-Hero.md": "Hero\n",
            "pages/home/1.1-First.md": "First\n",
            "pages/home/1.2-Second.md": "Second\n",
            "pages/home/2-Features.md": "Features\n",
            "pages/home/3-Unlisted.md": "Unlisted\n",
        },
    )
    output = create_collector({"environment": "development"}).collect_sync(root)

    home = output.pages[0]
    assert _ids(home.sections) == ["2", "1"], "listed order should win over ids"
    assert _ids(home.sections[1].subsections) == ["1.2", "1.1"]
    assert home.metadata == {"title": "Home"}, "sections is not page metadata"
    assert output.errors == [], f"unexpected errors {output.errors!r}"


def test_empty_page_sections_list_falls_back_to_directory(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "pages/home/page.yml": "sections: []\n",
            "pages/home/2-B.md": "B\n",
            "pages/home/1-A.md": "A\n",
        },
    )
    output = create_collector().collect_sync(root)
    assert _ids(output.pages[0].sections) == ["1", "2"]


def test_listed_section_that_is_missing_fails_the_page(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "pages/home/1-Hi.md": "Hi\n",
            "pages/about/page.yml": "sections: [1-Gone.md]\n",
        },
    )
    output = create_collector({"environment": "development"}).collect_sync(root)

    assert [page.route for page in output.pages] == ["/"]
    assert output.errors is not None
    assert output.errors[0]["page"] == "about"
    assert output.errors[0]["message"].startswith(
        "Failed to process section 1-Gone.md"
    ), f"unexpected errors {output.errors!r}"


class DecliningLoader(LoaderPlugin):
    def __init__(self) -> None:
        super().__init__()
        self.sources: list[object] = []

    async def load_data(self, source, context):
        self.sources.append(source)
        return None


class FirstLoader(LoaderPlugin):
    async def load_data(self, source, context):
        return {"loader": "first", "source": source}


class SecondLoader(LoaderPlugin):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def load_data(self, source, context):
        self.calls += 1
        return {"loader": "second"}


class BrokenLoader(LoaderPlugin):
    async def load_data(self, source, context):
        raise RuntimeError("backend unavailable")


def test_first_loader_returning_data_wins(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Team.md": "---\ninput: team\n---\n"})
    declining, second = DecliningLoader(), SecondLoader()
    collector = ContentCollector({"environment": "development"})
    collector.use(declining).use(FirstLoader()).use(second)

    output = collector.collect_sync(root)

    assert output.pages[0].sections[0].props == {
        "input": {"loader": "first", "source": "team"}
    }, "the first non-None result should be used"
    assert declining.sources == ["team"], "declining loaders are still consulted"
    assert second.calls == 0, "later loaders are skipped once data is found"


def test_all_loaders_declining_leaves_input_unresolved(tmp_path: Path) -> None:
    root = write_site(tmp_path, {"pages/home/1-Team.md": "---\ninput: team\n---\n"})
    collector = ContentCollector().use(DecliningLoader())
    output = collector.collect_sync(root)
    assert output.pages[0].sections[0].props == {}


def test_raising_loader_fails_section_and_page(tmp_path: Path) -> None:
    root = write_site(
        tmp_path,
        {
            "pages/home/1-Hi.md": "Hi\n",
            "pages/team/1-Team.md": "---\ninput: team\n---\n",
        },
    )
    collector = ContentCollector({"environment": "development"})
    collector.use(BrokenLoader()).use(FirstLoader())

    output = collector.collect_sync(root)

    assert [page.route for page in output.pages] == ["/"], "team page dropped"
    assert output.errors is not None
    assert len(output.errors) == 1, f"unexpected errors {output.errors!r}"
    assert output.errors[0]["page"] == "team"
    assert output.errors[0]["message"] == (
        "Failed to process section 1-Team.md: backend unavailable"
    )
