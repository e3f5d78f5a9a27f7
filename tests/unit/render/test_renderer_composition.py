from __future__ import annotations

import pytest

from repo_prompt.errors import CompositionError, LayoutCycleError, LayoutDepthError
from repo_prompt.metrics import OutputMetrics, SimpleCounter
from repo_prompt.render import MemoryLayer, Renderer, Resolver, split_addresses


def _renderer(files: dict[str, str], **kwargs: object) -> Renderer:
    return Renderer(Resolver([MemoryLayer(files, name="repo")]), **kwargs)  # type: ignore[arg-type]


def _with_front_matter(front_matter: str, body: str) -> str:
    return f"---toml\n{front_matter}\n---\n{body}"


def test_split_addresses_drops_empty_parts() -> None:
    assert split_addresses(" a ; ;b;") == ["a", "b"]
    assert split_addresses("") == []


def test_layout_wraps_rendered_content() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "wrap"', "X"),
            "wrap.md": "OUTER[{{ content }}]",
        }
    )
    assert renderer.render("page") == "OUTER[X]"


def test_first_listed_layout_is_outermost() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "outer;inner"', "X"),
            "outer.md": "O[{{ content }}]",
            "inner.md": "I[{{ content }}]",
        }
    )
    assert renderer.render("page") == "O[I[X]]"


def test_layouts_can_have_layouts() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "mid"', "X"),
            "mid.md": _with_front_matter('layout = "base"', "M[{{ content }}]"),
            "base.md": "B[{% block main %}{{ content }}{% endblock %}]",
        }
    )
    assert renderer.render("page") == "B[M[X]]"


def test_empty_main_block_receives_content() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "base"', "X"),
            "base.md": "<{% block main %}{% endblock %}>\n{%- block main2 %}{% endblock %}",
        }
    )
    assert renderer.render("page") == "<X>"


def test_layout_cycle_is_detected() -> None:
    renderer = _renderer(
        {
            "a.md": _with_front_matter('layout = "b"', "A"),
            "b.md": _with_front_matter('layout = "a"', "B{{ content }}"),
        }
    )
    with pytest.raises(LayoutCycleError, match="layout cycle detected: a.md"):
        renderer.render("a")


def test_self_layout_is_a_cycle() -> None:
    renderer = _renderer({"a.md": _with_front_matter('layout = "a"', "A")})
    with pytest.raises(LayoutCycleError):
        renderer.render("a")


def test_repeated_layout_in_one_list_is_a_cycle() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "a;a"', "X"),
            "a.md": "A[{{ content }}]",
        }
    )
    with pytest.raises(LayoutCycleError, match="layout cycle detected: a.md"):
        renderer.render("page")


def test_dotted_field_placeholders_are_not_jinja() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "wrap"', "X"),
            "wrap.md": "OUTER[{{.Content}}]",
        }
    )
    with pytest.raises(CompositionError, match="error parsing template wrap.md"):
        renderer.render("page")


def _chain(length: int) -> dict[str, str]:
    files = {}
    for index in range(length):
        files[f"t{index}.md"] = _with_front_matter(f'layout = "t{index + 1}"', "{{ content }}.")
    files[f"t{length}.md"] = "[{{ content }}]"
    return files


def test_nesting_up_to_limit_renders() -> None:
    assert _renderer(_chain(10)).render("t0") == "[" + "." * 10 + "]"


def test_nesting_beyond_limit_raises() -> None:
    with pytest.raises(LayoutDepthError, match=r"layout nesting too deep \(max 10\)"):
        _renderer(_chain(11)).render("t0")


def test_too_many_layouts_on_one_template_raise() -> None:
    files = {f"l{index}.md": "{{ content }}" for index in range(11)}
    layouts = ";".join(f"l{index}" for index in range(11))
    files["multi.md"] = _with_front_matter(f'layout = "{layouts}"', "X")
    with pytest.raises(LayoutDepthError):
        _renderer(files).render("multi")


def test_before_and_after_blocks() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('before = "head"\nafter = ["!foot"]', "B"),
            "head.md": "H {{ raw }}",
            "foot.md": "F{{ 1 + 1 }}",
        }
    )
    assert renderer.render("page") == "H {{ raw }}\nB\nF2"


def test_before_paths_are_relative_to_template() -> None:
    renderer = _renderer(
        {
            "dir/page.md": _with_front_matter('before = "./part"', "P"),
            "dir/part.md": "Q",
        }
    )
    assert renderer.render("dir/page") == "Q\nP"


def test_missing_before_file_is_reported() -> None:
    renderer = _renderer({"page.md": _with_front_matter('before = "missing"', "P")})
    with pytest.raises(
        CompositionError,
        match="error processing before files: error processing file 'missing'",
    ):
        renderer.render("page")


def test_after_escaping_layer_is_reported() -> None:
    renderer = _renderer({"dir/page.md": _with_front_matter('after = "../../x"', "P")})
    with pytest.raises(CompositionError, match="error processing after files"):
        renderer.render("dir/page")


def test_partial_and_include_functions() -> None:
    renderer = _renderer(
        {
            "page.md": "A{{ partial('frag') }}{{ include('raw.txt') }}",
            "frag.md": "[{{ content }}]",
            "raw.txt": "{{ not rendered }}",
        }
    )
    assert renderer.render("page", content="C") == "A[C]{{ not rendered }}"


def test_recursive_partial_hits_cycle_guard() -> None:
    renderer = _renderer({"page.md": "{{ partial('page') }}"})
    with pytest.raises(CompositionError):
        renderer.render("page")


def test_data_object_is_exposed_as_repo() -> None:
    renderer = _renderer({"page.md": "{{ repo.name }}:{{ content }}"}, data={"name": "demo"})
    assert renderer.render("page", content="x") == "demo:x"


def test_template_errors_are_wrapped() -> None:
    with pytest.raises(CompositionError, match="error executing template page.md"):
        _renderer({"page.md": "{{ missing_value }}"}).render("page")
    with pytest.raises(CompositionError, match="error parsing template page.md"):
        _renderer({"page.md": "{% if %}"}).render("page")


def test_sandboxed_environment_blocks_private_attributes() -> None:
    renderer = _renderer({"page.md": "{{ content.__class__ }}"}, sandboxed=True)
    with pytest.raises(CompositionError):
        renderer.render("page", content="x")


def test_front_matter_mode_applies_to_layouts() -> None:
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "wrap"\nmode = "gpt"', "X"),
            "wrap.md": "plain[{{ content }}]",
            "wrap.gpt.md": "gpt[{{ content }}]",
        }
    )
    assert renderer.render("page") == "gpt[X]"


def test_rendered_templates_are_measured() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=1)
    renderer = _renderer(
        {
            "page.md": _with_front_matter('layout = "wrap"', "X{{ include('inc.txt') }}"),
            "wrap.md": "[{{ content }}]",
            "inc.txt": "i",
        },
        metrics=metrics,
    )
    renderer.render("page")
    metrics.wait()
    assert metrics.count_by("template") == 3
    assert metrics.get("template", "inc.txt") is not None
