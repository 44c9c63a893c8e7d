from inedit_cms.services.localization import (
    build_category_tree,
    display_text,
    merge_localized,
    representative_value,
    resolve,
)


def test_resolve_prefers_requested_locale_then_english():
    field = {"es": "Vino", "en": "Wine"}

    assert resolve(field, "es") == "Vino"
    assert resolve(field, "fr") == "Wine"
    assert resolve({"es": "Vino"}, "fr") == ""


def test_resolve_treats_empty_strings_as_missing():
    assert resolve({"fr": "", "en": "Wine"}, "fr") == "Wine"
    assert resolve({"fr": "", "en": ""}, "fr") == ""


def test_resolve_passes_plain_strings_and_tolerates_none():
    assert resolve("Rioja", "de") == "Rioja"
    assert resolve(None, "es") == ""
    assert resolve(42, "es") == ""


def test_display_text_uses_any_populated_locale_last():
    assert display_text({"es": "Rioja"}, "en") == "Rioja"
    assert display_text({"es": "Rioja", "en": "Rioja red"}, "ca") == "Rioja red"
    assert display_text({}, "en") == ""


def test_representative_value_prefers_english():
    assert representative_value({"es": "Vino", "en": "Wine"}) == "Wine"
    assert representative_value({"es": "Vino"}) == "Vino"
    assert representative_value(None) == ""


def test_merge_localized_keeps_existing_locales():
    merged = merge_localized({"en": "Wine", "es": "Vino"}, {"fr": "Vin"})

    assert merged == {"en": "Wine", "es": "Vino", "fr": "Vin"}


def test_merge_localized_overwrites_sent_locale_without_mutating_input():
    current = {"en": "Wine"}
    merged = merge_localized(current, {"en": "Red wine"})

    assert merged == {"en": "Red wine"}
    assert current == {"en": "Wine"}


def test_build_category_tree_nests_children_and_keeps_orphans_at_root():
    categories = [
        {"id": "wines", "parent_id": None},
        {"id": "reds", "parent_id": "wines"},
        {"id": "lost", "parent_id": "missing"},
    ]

    tree = build_category_tree(categories)

    assert [node["id"] for node in tree] == ["wines", "lost"]
    assert [child["id"] for child in tree[0]["children"]] == ["reds"]


def test_build_category_tree_promotes_parent_cycles_to_roots():
    categories = [
        {"id": "a", "parent_id": "b"},
        {"id": "b", "parent_id": "a"},
        {"id": "c", "parent_id": None},
        {"id": "d", "parent_id": "a"},
        {"id": "e", "parent_id": "e"},
    ]

    tree = build_category_tree(categories)

    assert [node["id"] for node in tree] == ["a", "b", "c", "e"]
    assert [child["id"] for child in tree[0]["children"]] == ["d"]
