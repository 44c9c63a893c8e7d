import logging

import httpx

from inedit_cms.services.migration import MigrationRunner, main


def _seed_menu(file_store):
    file_store.write(
        "menu",
        {
            "categories": [
                {"id": "starters", "slug": "starters", "name": {"en": "Starters", "es": "Entrantes"}},
                {"id": "mains", "slug": "mains", "name": {"en": "Mains"}},
            ],
            "items": [
                {"id": "dish_1", "name": {"en": "Bravas"}, "price": "7", "categoryId": "starters"},
                {
                    "id": "dish_2",
                    "name": {"en": "Paella"},
                    "price": "18.50",
                    "categoryId": "mains",
                    "image": "/images/paella.jpg",
                },
                {"id": "dish_3", "name": {"en": "Ghost"}, "price": "1", "categoryId": "desserts"},
            ],
        },
    )


def test_menu_items_are_remapped_and_dangling_ones_skipped(file_store, supabase_store, fake_supabase, caplog):
    _seed_menu(file_store)

    with caplog.at_level(logging.ERROR, logger="inedit_cms.services.migration"):
        report = MigrationRunner(file_store, supabase_store).run()

    assert report.migrated["menu_categories"] == 2
    assert report.migrated["menu_items"] == 2
    assert report.skipped == ["menu item dish_3"]
    assert any(
        "dish_3 references unknown category desserts" in record.getMessage() for record in caplog.records
    )
    assert report.failed == []

    categories = {row["slug"]: row["id"] for row in fake_supabase.tables["menu_categories"]}
    items = {row["name"]["en"]: row for row in fake_supabase.tables["menu_items"]}
    assert "starters" not in categories.values()
    assert items["Bravas"]["category_id"] == categories["starters"]
    assert items["Paella"]["category_id"] == categories["mains"]
    assert items["Paella"]["image_url"] == "/images/paella.jpg"


def test_items_without_category_are_migrated_uncategorized(file_store, supabase_store, fake_supabase):
    file_store.write("menu", {"categories": [], "items": [{"id": "dish_1", "name": {"en": "Bread"}, "price": "2"}]})

    report = MigrationRunner(file_store, supabase_store).run()

    assert report.migrated["menu_items"] == 1
    assert fake_supabase.tables["menu_items"][0]["category_id"] is None


def test_beverage_parents_are_remapped(file_store, supabase_store, fake_supabase):
    file_store.write(
        "beverages",
        {
            "categories": [
                {"id": "reds", "slug": "reds", "name": {"en": "Reds"}, "parentId": "wines"},
                {"id": "wines", "slug": "wines", "name": {"en": "Wines"}},
                {"id": "orphan", "slug": "orphan", "name": {"en": "Orphan"}, "parent_id": "gone"},
            ],
            "items": [],
        },
    )

    MigrationRunner(file_store, supabase_store).run()

    rows = {row["slug"]: row for row in fake_supabase.tables["beverage_categories"]}
    assert rows["reds"]["parent_id"] == rows["wines"]["id"]
    assert rows["wines"]["parent_id"] is None
    assert rows["orphan"]["parent_id"] is None


def test_failed_inserts_are_counted_and_the_run_continues(file_store, supabase_store, fake_supabase):
    _seed_menu(file_store)
    fake_supabase.fail("menu_items", "insert", httpx.ConnectError("down"), times=2)

    report = MigrationRunner(file_store, supabase_store).run()

    assert report.failed == ["menu item dish_1"]
    assert report.migrated["menu_items"] == 1
    assert not report.ok


def test_other_domains_are_migrated(file_store, supabase_store, fake_supabase):
    file_store.write("pages", {"home": {"title": {"en": "Home"}, "content": {"hero": {"en": "Hi"}}}})
    file_store.write("gallery", {"images": [{"id": "image_1", "title": {"en": "Bar"}, "image": "/g/bar.jpg"}]})
    file_store.write("settings", {"name": {"en": "Inedit"}, "contactInfo": {"phone": "1"}, "openingHours": []})
    file_store.write("translations/en", {"nav.menu": "Menu"})
    file_store.write("translations/es", {"nav.menu": "Carta", "nav.home": "Inicio"})

    report = MigrationRunner(file_store, supabase_store).run()

    assert report.migrated["pages"] == 1
    assert report.migrated["gallery_images"] == 1
    assert report.migrated["settings"] == 1
    assert report.migrated["translations"] == 3
    assert fake_supabase.tables["pages"][0]["slug"] == "home"
    assert fake_supabase.tables["gallery_images"][0]["image_url"] == "/g/bar.jpg"
    assert fake_supabase.tables["settings"][0]["contact_info"]["phone"] == "1"


def test_missing_documents_are_skipped(file_store, supabase_store, fake_supabase):
    report = MigrationRunner(file_store, supabase_store).run()

    assert report.ok
    assert sum(report.migrated.values()) == 0
    assert fake_supabase.calls == []


def test_command_line_runs_against_data_dir(tmp_path, file_store, supabase_store, fake_supabase):
    _seed_menu(file_store)

    exit_code = main(["--data-dir", str(file_store.data_dir)], store_factory=lambda: supabase_store)

    assert exit_code == 0
    assert len(fake_supabase.tables["menu_items"]) == 2
