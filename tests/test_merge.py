"""merge (locator & merger) のテスト。"""

from docsync.catalog import catalog_from_pairs
from docsync.merge import is_catalog_name, merge_section


def test_catalog_scenario_features_only() -> None:
    doc = "# Title\n\n## Features & API\n\n**Foo**: does foo\n"
    out = merge_section(doc, "Features & API", "**Bar**: does bar")
    assert out == (
        "# Title\n\n## Features & API\n\n**Features:**\n\n"
        "- **Foo**: does foo\n- **Bar**: does bar\n"
    )
    assert out.count("## Features & API") == 1
    assert "**API:**" not in out


def test_merge_twice_is_idempotent() -> None:
    doc = "# Title\n\nIntro.\n\n## Usage\n\nold\n\n## Features & API\n\n- **A**: a\n"
    for name, content in [
        ("Usage", "run it"),
        ("Features & API", "**API:**\n- **run()**: runs"),
        ("Changelog", "- first release"),
    ]:
        once = merge_section(doc, name, content)
        twice = merge_section(once, name, content)
        assert twice == once


def test_catalog_dedup_keeps_original_description() -> None:
    doc = "## Features & API\n\n**Features:**\n\n- **A**: first a\n- **B**: original b\n"
    out = merge_section(doc, "features & api", "- **B**: new b\n- **C**: c")
    assert "- **A**: first a" in out
    assert "- **B**: original b" in out
    assert "new b" not in out
    assert "- **C**: c" in out
    assert out.count("**B**") == 1


def test_duplicate_catalog_sections_are_folded() -> None:
    doc = (
        "# Proj\n\n"
        "## Features & API\n\n- **A**: a\n\n"
        "## Install\n\npip install proj\n\n"
        "## Features & API\n\n- **B**: b\n"
    )
    out = merge_section(doc, "Features & API", "- **C**: c")
    assert out == (
        "# Proj\n\n"
        "## Features & API\n\n**Features:**\n\n- **A**: a\n- **B**: b\n- **C**: c\n\n"
        "## Install\n\npip install proj\n"
    )


def test_nested_duplicate_is_absorbed_by_primary() -> None:
    doc = "## Features & API\n\n- **A**: a\n\n### Features & API\n\n- **B**: b\n"
    out = merge_section(doc, "Features & API", "- **C**: c")
    assert out == "## Features & API\n\n**Features:**\n\n- **A**: a\n- **B**: b\n- **C**: c\n"


def test_signature_keys_with_stars_survive_catalog_merge() -> None:
    doc = "## Features & API\n\n**API:**\n\n- **run(*args)**: runs things\n- **f(**kw)**: old\n"
    content = "- **New**: new feature\n\n**API:**\n\n- **f(**kw)**: new\n"
    out = merge_section(doc, "Features & API", content)
    assert out == (
        "## Features & API\n\n**Features:**\n\n- **New**: new feature\n\n"
        "**API:**\n\n- **run(*args)**: runs things\n- **f(**kw)**: old\n"
    )
    assert merge_section(out, "Features & API", content) == out


def test_pairs_with_stars_are_merged_into_existing_catalog() -> None:
    doc = "## Features & API\n\n- **A**: a\n"
    out = merge_section(doc, "Features & API", catalog_from_pairs([], [("f(*xs)", "variadic")]))
    assert out == "## Features & API\n\n**Features:**\n\n- **A**: a\n\n**API:**\n\n- **f(*xs)**: variadic\n"


def test_fenced_example_in_catalog_is_kept_as_code() -> None:
    doc = "## Features & API\n\n- **A**: a\n\n```md\n- **Z**: example only\n```\n"
    out = merge_section(doc, "Features & API", "- **B**: b")
    assert out == (
        "## Features & API\n\n**Features:**\n\n- **A**: a\n- **B**: b\n\n"
        "```md\n- **Z**: example only\n```\n"
    )
    assert merge_section(out, "Features & API", "- **B**: b") == out


def test_missing_catalog_section_is_appended_rendered() -> None:
    out = merge_section("# P\n", "Features & API", "**API:**\n- **run()**: runs")
    assert out == "# P\n\n## Features & API\n\n**API:**\n\n- **run()**: runs\n"


def test_catalog_without_entries_falls_back_to_replacement() -> None:
    doc = "## Features & API\n\nSome prose.\n"
    assert merge_section(doc, "Features & API", "More prose.") == "## Features & API\n\nMore prose.\n"


def test_missing_section_is_appended_without_touching_original() -> None:
    doc = "# Doc\n\nIntro text\n  indented line\n\n## A\n\nbody a\n"
    out = merge_section(doc, "Changelog", "- v1")
    assert out == doc + "\n## Changelog\n\n- v1\n"
    assert out.startswith(doc)


def test_append_to_headerless_and_empty_documents() -> None:
    assert merge_section("just text", "Notes", "hello") == "just text\n\n## Notes\n\nhello"
    assert merge_section("", "Notes", "hello") == "## Notes\n\nhello"


def test_append_follows_document_heading_gap() -> None:
    doc = "# A\n\n\n## B\n\nb\n"
    out = merge_section(doc, "C", "c")
    assert out == "# A\n\n\n## B\n\nb\n\n\n## C\n\nc\n"


def test_replace_keeps_everything_outside_the_section() -> None:
    doc = "# Doc\n\n## Usage\n\nold usage\n\n## License\n\nMIT\n"
    out = merge_section(doc, "usage", "new usage")
    assert out == "# Doc\n\n## Usage\n\nnew usage\n\n## License\n\nMIT\n"


def test_replace_keeps_hand_written_subsections() -> None:
    doc = "## API Notes\n\nold\n\n### Details\n\nhand written\n"
    out = merge_section(doc, "API Notes", "new")
    assert out == "## API Notes\n\nnew\n\n### Details\n\nhand written\n"


def test_content_with_subsections_replaces_subtree() -> None:
    doc = "## Usage\n\nold\n\n### Old sub\n\nx\n\n## License\n\nMIT\n"
    content = "Intro\n\n### Options\n\n- a"
    out = merge_section(doc, "Usage", content)
    assert out == "## Usage\n\nIntro\n\n### Options\n\n- a\n\n## License\n\nMIT\n"
    assert merge_section(out, "Usage", content) == out


def test_sibling_heading_in_content_is_not_repeated() -> None:
    doc = "# D\n\n## Usage\n\nold\n\n## License\n\nMIT\n"
    content = "run it\n\n## Examples\n\nex"
    once = merge_section(doc, "Usage", content)
    assert once == "# D\n\n## Usage\n\nrun it\n\n## Examples\n\nex\n\n## License\n\nMIT\n"
    twice = merge_section(once, "Usage", content)
    assert twice == once
    assert twice.count("## Examples") == 1


def test_shallower_heading_in_content_keeps_following_sections() -> None:
    doc = "# D\n\n## Usage\n\nold\n\n## License\n\nMIT\n"
    content = "run it\n\n# Appendix\n\nmore"
    once = merge_section(doc, "Usage", content)
    assert once == "# D\n\n## Usage\n\nrun it\n\n# Appendix\n\nmore\n\n## License\n\nMIT\n"
    assert merge_section(once, "Usage", content) == once


def test_changed_sibling_content_replaces_previous_merge() -> None:
    doc = "## Usage\n\nrun it\n\n## Examples\n\nold ex\n\n## License\n\nMIT\n"
    out = merge_section(doc, "Usage", "run it\n\n## Examples\n\nnew ex")
    assert out == "## Usage\n\nrun it\n\n## Examples\n\nnew ex\n\n## License\n\nMIT\n"


def test_leading_own_heading_is_dropped() -> None:
    out = merge_section("# D\n\n## Usage\n\nold\n", "Usage", "## Usage\n\nnew")
    assert out == "# D\n\n## Usage\n\nnew\n"


def test_first_matching_section_wins() -> None:
    doc = "## Setup A\n\na\n\n## Setup B\n\nb\n"
    out = merge_section(doc, "setup", "x")
    assert out == "## Setup A\n\nx\n\n## Setup B\n\nb\n"


def test_empty_content_is_a_noop() -> None:
    doc = "# Doc\n\n## Usage\n\nkeep me\n"
    assert merge_section(doc, "Usage", "   \n\t") == doc
    assert merge_section(doc, "Features & API", "") == doc


def test_crlf_document_stays_crlf() -> None:
    doc = "# T\r\n\r\n## Usage\r\n\r\nold\r\n"
    out = merge_section(doc, "Usage", "new line 1\nnew line 2")
    assert out == "# T\r\n\r\n## Usage\r\n\r\nnew line 1\r\nnew line 2\r\n"
    assert "\n" not in out.replace("\r\n", "")


def test_crlf_catalog_append_stays_crlf() -> None:
    out = merge_section("# T\r\n", "Features & API", "- **X**: x\n")
    assert "\n" not in out.replace("\r\n", "")


def test_preserve_formatting_off_uses_lf() -> None:
    out = merge_section("# T\r\n\r\n## A\r\n\r\nold\r\n", "A", "new", preserve_formatting=False)
    assert out == "# T\n\n## A\n\nnew\n"


def test_is_catalog_name() -> None:
    assert is_catalog_name("Features & API")
    assert is_catalog_name("api and FEATURES")
    assert not is_catalog_name("Features")
    assert not is_catalog_name("API")
