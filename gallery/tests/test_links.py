"""
Tests for linking people to images.
"""
import asyncio
import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from gallery.errors import ConflictError, NotFoundError, ValidationError
from gallery.models import ImagePerson
from gallery.services import links
from gallery.services.geometry import BoundingBox


@pytest.fixture
async def image(make_image):
    return await make_image("family.jpg", width=800, height=600)


@pytest.fixture
async def person(make_person):
    return await make_person("Ada Lovelace")


class TestLinkPersonToImage:
    async def test_link_without_box(self, db, image, person):
        link = await links.link_person_to_image(db, person.id, image.id)

        assert link.image_id == image.id
        assert link.person_id == person.id
        assert link.bounding_box is None
        assert link.bounding_box_x is None
        assert link.bounding_box_height is None

    async def test_link_with_box_round_trips(self, db, image, person):
        box = BoundingBox(x=100, y=150, width=200, height=250)

        await links.link_person_to_image(db, person.id, image.id, bounding_box=box)
        linked = await links.get_people_for_image(db, image.id)

        assert len(linked) == 1
        assert linked[0].person.id == person.id
        assert linked[0].bounding_box == box

    async def test_box_exceeding_image_rejected(self, db, image, person):
        box = BoundingBox(x=700, y=500, width=200, height=150)

        with pytest.raises(ValidationError, match="Bounding box exceeds image dimensions"):
            await links.link_person_to_image(db, person.id, image.id, bounding_box=box)

        assert await links.get_people_for_image(db, image.id) == []

    async def test_negative_box_rejected(self, db, image, person):
        box = BoundingBox(x=-5, y=10, width=20, height=20)

        with pytest.raises(ValidationError, match="Invalid bounding box coordinates"):
            await links.link_person_to_image(db, person.id, image.id, bounding_box=box)

    async def test_unknown_dimensions_skip_containment(self, db, make_image, person):
        image = await make_image("unprobed.jpg", width=None, height=None)
        box = BoundingBox(x=5000, y=5000, width=10, height=10)

        await links.link_person_to_image(db, person.id, image.id, bounding_box=box)

        linked = await links.get_people_for_image(db, image.id)
        assert linked[0].bounding_box == box

    async def test_unknown_dimensions_still_need_positive_size(self, db, make_image, person):
        image = await make_image("unprobed.jpg", width=None, height=None)

        with pytest.raises(ValidationError, match="Invalid bounding box coordinates"):
            await links.link_person_to_image(
                db, person.id, image.id, bounding_box=BoundingBox(0, 0, 0, 10)
            )

    async def test_missing_image(self, db, person):
        with pytest.raises(NotFoundError, match="Image not found"):
            await links.link_person_to_image(db, person.id, "no-such-image")

    async def test_missing_person(self, db, image):
        with pytest.raises(NotFoundError, match="Person not found"):
            await links.link_person_to_image(db, "no-such-person", image.id)

    async def test_image_checked_before_person(self, db):
        with pytest.raises(NotFoundError, match="Image not found"):
            await links.link_person_to_image(db, "no-such-person", "no-such-image")

    async def test_image_checked_before_box(self, db, person):
        with pytest.raises(NotFoundError, match="Image not found"):
            await links.link_person_to_image(
                db, person.id, "no-such-image", bounding_box=BoundingBox(-1, -1, 0, 0)
            )

    async def test_duplicate_link_conflicts(self, db, image, person):
        await links.link_person_to_image(db, person.id, image.id)

        with pytest.raises(ConflictError, match="Person is already linked to this image"):
            await links.link_person_to_image(
                db, person.id, image.id, bounding_box=BoundingBox(0, 0, 10, 10)
            )

        # The original link is untouched
        linked = await links.get_people_for_image(db, image.id)
        assert len(linked) == 1
        assert linked[0].bounding_box is None

    async def test_relink_after_unlink(self, db, image, person):
        await links.link_person_to_image(db, person.id, image.id)
        with pytest.raises(ConflictError):
            await links.link_person_to_image(db, person.id, image.id)

        await links.unlink_person_from_image(db, person.id, image.id)
        await links.link_person_to_image(
            db, person.id, image.id, bounding_box=BoundingBox(10, 10, 50, 50)
        )

        linked = await links.get_people_for_image(db, image.id)
        assert linked[0].bounding_box == BoundingBox(10, 10, 50, 50)

    async def test_storage_uniqueness_violation_is_conflict(self, db, image, person, monkeypatch):
        async def failing_flush(*args, **kwargs):
            raise IntegrityError("INSERT INTO image_people", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr(db, "flush", failing_flush)

        with pytest.raises(ConflictError, match="already linked"):
            await links.link_person_to_image(db, person.id, image.id)

    async def test_concurrent_links_for_same_pair(self, database, image, person):
        async def attempt():
            async with database.session() as session:
                try:
                    await links.link_person_to_image(session, person.id, image.id)
                    return "linked"
                except ConflictError:
                    return "conflict"

        results = await asyncio.gather(attempt(), attempt())

        assert sorted(results) == ["conflict", "linked"]
        async with database.session() as session:
            rows = (await session.execute(select(ImagePerson))).scalars().all()
        assert len(rows) == 1

    async def test_partial_box_rejected_by_storage(self, db, image, person):
        db.add(ImagePerson(image_id=image.id, person_id=person.id, bounding_box_x=10))

        with pytest.raises(IntegrityError):
            await db.commit()
        await db.rollback()


class TestUnlinkPersonFromImage:
    async def test_unlink(self, db, image, person):
        await links.link_person_to_image(db, person.id, image.id)

        await links.unlink_person_from_image(db, person.id, image.id)

        assert await links.get_people_for_image(db, image.id) == []

    async def test_never_linked(self, db, image, person):
        with pytest.raises(NotFoundError, match="No link found between this person and image"):
            await links.unlink_person_from_image(db, person.id, image.id)

    async def test_unlink_twice(self, db, image, person):
        await links.link_person_to_image(db, person.id, image.id)
        await links.unlink_person_from_image(db, person.id, image.id)

        with pytest.raises(NotFoundError):
            await links.unlink_person_from_image(db, person.id, image.id)

    async def test_only_matching_pair_removed(self, db, image, make_image, make_person):
        other_image = await make_image("other.jpg")
        alice = await make_person("Alice")
        bob = await make_person("Bob")
        await links.link_person_to_image(db, alice.id, image.id)
        await links.link_person_to_image(db, bob.id, image.id)
        await links.link_person_to_image(db, alice.id, other_image.id)

        await links.unlink_person_from_image(db, alice.id, image.id)

        assert [p.person.id for p in await links.get_people_for_image(db, image.id)] == [bob.id]
        assert [p.person.id for p in await links.get_people_for_image(db, other_image.id)] == [alice.id]


class TestQueries:
    async def test_people_for_unknown_image(self, db):
        with pytest.raises(NotFoundError, match="Image not found"):
            await links.get_people_for_image(db, "no-such-image")

    async def test_people_for_image_without_links(self, db, image):
        assert await links.get_people_for_image(db, image.id) == []

    async def test_people_in_link_order(self, db, image, make_person):
        first = await make_person("Zed")
        second = await make_person("Amy")
        await links.link_person_to_image(db, first.id, image.id, bounding_box=BoundingBox(0, 0, 10, 10))
        await links.link_person_to_image(db, second.id, image.id)

        linked = await links.get_people_for_image(db, image.id)

        assert [item.person.name for item in linked] == ["Zed", "Amy"]
        assert linked[0].bounding_box == BoundingBox(0, 0, 10, 10)
        assert linked[1].bounding_box is None

    async def test_images_for_person(self, db, image, make_image, person):
        other = await make_image("beach.jpg")
        await links.link_person_to_image(db, person.id, image.id)
        await links.link_person_to_image(db, person.id, other.id, bounding_box=BoundingBox(1, 2, 3, 4))

        linked = await links.get_images_for_person(db, person.id)

        assert [item.image.filename for item in linked] == ["family.jpg", "beach.jpg"]
        assert linked[1].bounding_box == BoundingBox(1, 2, 3, 4)

    async def test_images_for_unknown_person(self, db):
        with pytest.raises(NotFoundError, match="Person not found"):
            await links.get_images_for_person(db, "no-such-person")
