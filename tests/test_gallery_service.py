import pytest

from inedit_cms.errors import NotFound, ValidationFailure


def test_image_round_trip(gallery_service):
    created = gallery_service.create_image(
        {"title": {"en": "Terrace", "es": "Terraza"}, "image": {"url": "https://cdn.example.com/t.jpg", "width": 1200}}
    )

    stored = gallery_service.get_image(created["id"], raw=True)

    assert stored["title"] == {"en": "Terrace", "es": "Terraza"}
    assert stored["image"]["url"] == "https://cdn.example.com/t.jpg"
    assert stored["image"]["width"] == 1200
    assert gallery_service.list_images("es")[0]["title"] == "Terraza"


def test_image_url_is_required(gallery_service):
    with pytest.raises(ValidationFailure):
        gallery_service.create_image({"title": {"en": "Terrace"}})


def test_update_merges_title_and_keeps_image(gallery_service):
    created = gallery_service.create_image({"title": {"en": "Terrace"}, "image": "https://cdn.example.com/t.jpg"})

    gallery_service.update_image(created["id"], {"title": {"ca": "Terrassa"}})

    stored = gallery_service.get_image(created["id"], raw=True)
    assert stored["title"] == {"en": "Terrace", "ca": "Terrassa"}
    assert stored["image"]["url"] == "https://cdn.example.com/t.jpg"


def test_delete_image_twice(gallery_service):
    created = gallery_service.create_image({"title": {"en": "Terrace"}, "image": "https://cdn.example.com/t.jpg"})

    gallery_service.delete_image(created["id"])

    with pytest.raises(NotFound):
        gallery_service.delete_image(created["id"])
    with pytest.raises(NotFound):
        gallery_service.get_image(created["id"])
