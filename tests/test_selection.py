import pytest

from gritwit.selection import (
    ConfirmDialog,
    SelectOption,
    file_name_from_path,
    filter_options,
    multi_select_label,
    remove_value,
    selected_chips,
    single_select_label,
    toggle_value,
)

OPTIONS = [
    SelectOption("conditioning", "Conditioning"),
    SelectOption("gymnastics", "Gymnastics"),
    SelectOption("warmup", "Warm Up"),
]


def test_filter_empty_query_returns_all():
    assert filter_options(OPTIONS, "") == OPTIONS


def test_filter_is_case_insensitive():
    assert filter_options(OPTIONS, "GYM") == [OPTIONS[1]]


def test_filter_matches_substring_inside_label():
    assert filter_options(OPTIONS, "m u") == [OPTIONS[2]]


def test_filter_no_match_is_empty():
    assert filter_options(OPTIONS, "zzz") == []


def test_filter_result_is_subset_in_order():
    result = filter_options(OPTIONS, "n")
    assert [o for o in OPTIONS if o in result] == result


def test_multi_label_placeholder_when_empty():
    assert multi_select_label([], "All Categories") == "All Categories"


def test_multi_label_default_placeholder():
    assert multi_select_label([]) == "Select..."


def test_multi_label_counts_selection():
    assert multi_select_label(["a", "b"]) == "2 selected"


def test_selected_chips_follow_option_order():
    chips = selected_chips(OPTIONS, ["warmup", "conditioning"])
    assert chips == [OPTIONS[0], OPTIONS[2]]


def test_selected_chips_ignore_unknown_values():
    assert selected_chips(OPTIONS, ["unknown"]) == []


def test_toggle_adds_missing_value():
    assert toggle_value(["a"], "b") == ["a", "b"]


def test_toggle_removes_present_value():
    assert toggle_value(["a", "b"], "a") == ["b"]


def test_toggle_twice_round_trips():
    start = ["x", "y"]
    assert toggle_value(toggle_value(start, "z"), "z") == start


def test_toggle_does_not_mutate_input():
    start = ["a"]
    toggle_value(start, "b")
    assert start == ["a"]


def test_remove_value():
    assert remove_value(["a", "b", "a"], "a") == ["b"]


def test_single_label_placeholder():
    assert single_select_label(OPTIONS, "", "Category") == "Category"


def test_single_label_uses_option_label():
    assert single_select_label(OPTIONS, "warmup") == "Warm Up"


def test_single_label_falls_back_to_value():
    assert single_select_label(OPTIONS, "custom") == "custom"


@pytest.mark.parametrize(
    "path, expected",
    [
        ("C:\\fakepath\\clip.mp4", "clip.mp4"),
        ("/home/user/clip.mov", "clip.mov"),
        ("clip.webm", "clip.webm"),
        ("dir/sub\\clip.m4v", "clip.m4v"),
    ],
)
def test_file_name_from_path(path, expected):
    assert file_name_from_path(path) == expected


def test_dialog_defaults():
    dialog = ConfirmDialog(on_confirm=lambda: None)
    assert (dialog.title, dialog.subtitle, dialog.confirm_label, dialog.visible) == (
        "Delete this item?",
        "This cannot be undone.",
        "Delete",
        False,
    )


def test_dialog_open_and_cancel_does_not_act():
    calls = []
    dialog = ConfirmDialog(on_confirm=lambda: calls.append(1))
    dialog.open()
    assert dialog.visible is True
    dialog.cancel()
    assert dialog.visible is False
    assert calls == []


def test_dialog_confirm_runs_action_and_hides():
    calls = []
    dialog = ConfirmDialog(on_confirm=lambda: calls.append("done"))
    dialog.open()
    dialog.confirm()
    assert calls == ["done"]
    assert dialog.visible is False


def test_dialog_confirm_error_keeps_dialog_open():
    def boom():
        raise RuntimeError("fail")

    dialog = ConfirmDialog(on_confirm=boom)
    dialog.open()
    with pytest.raises(RuntimeError):
        dialog.confirm()
    assert dialog.visible is True