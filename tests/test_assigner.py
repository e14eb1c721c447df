import pytest

from jd_organizer.assigner import assign_file
from jd_organizer.builder import build_structure
from jd_organizer.models import Area, Category, Item, Structure


@pytest.fixture
def structure():
    return build_structure(
        [
            {"path": "/s/report.pdf", "extension": "pdf"},
            {"path": "/s/notes.txt", "extension": "txt"},
            {"path": "/s/photo.png", "extension": "png"},
        ],
        "/s",
    )


def test_assign_matches_existing_category(structure):
    assignment = assign_file({"path": "/new/letter.docx", "extension": "docx"}, structure)

    assert assignment.area_number == 20
    assert assignment.category_number == 22
    assert assignment.item_number == "22.01"
    assert assignment.confidence == 0.85
    assert "docx" in assignment.reasoning
    assert "Text Documents" in assignment.reasoning
    assert "20" in assignment.reasoning


def test_assign_category_match_is_case_insensitive_substring():
    structure = Structure(
        id="s",
        name="Manual",
        root_path="/m",
        areas=[
            Area(
                number=30,
                name="Media",
                categories=[
                    Category(number=31, name="Holiday VIDEOS"),
                    Category(number=32, name="Family images 2023"),
                ],
            )
        ],
    )

    assignment = assign_file({"extension": "jpeg"}, structure)

    assert assignment.category_number == 32
    # No items yet, so the first item id is synthesized.
    assert assignment.item_number == "32.01"


def test_assign_uses_first_item_identifier():
    structure = Structure(
        id="s",
        name="Manual",
        root_path="/m",
        areas=[
            Area(
                number=40,
                name="Development",
                categories=[
                    Category(
                        number=43,
                        name="Source Code",
                        items=[Item(number="43.07", name="Old"), Item(number="43.08", name="New")],
                    )
                ],
            )
        ],
    )

    assignment = assign_file({"extension": "py"}, structure)

    assert (assignment.area_number, assignment.category_number) == (40, 43)
    assert assignment.item_number == "43.07"


def test_assign_missing_area_falls_back(structure):
    assignment = assign_file({"path": "/s/song.mp3", "extension": "mp3"}, structure)

    # Area 30 exists but has no audio category.
    assert (assignment.area_number, assignment.category_number) == (90, 91)

    assignment = assign_file({"path": "/s/app.py", "extension": "py"}, structure)
    assert (assignment.area_number, assignment.category_number) == (90, 91)
    assert assignment.item_number == "91.01"
    assert assignment.confidence == 0.5


@pytest.mark.parametrize("extension", ["xyz", "", "tmp"])
def test_assign_unmapped_extension_is_always_miscellaneous(extension):
    structure = build_structure(
        [{"path": "/m/a.xyz", "extension": "xyz"}, {"path": "/m/b.bin", "extension": "bin"}],
        "/m",
    )
    # Shift the miscellaneous category so a lookup would give a different answer.
    structure.areas[0].categories[0].number = 95

    assignment = assign_file({"extension": extension}, structure)

    assert assignment.area_number == 90
    assert assignment.category_number == 91
    assert assignment.item_number == "91.01"
    assert assignment.confidence == 0.5
    assert f"'{extension}'" in assignment.reasoning


def test_assign_does_not_mutate_structure(structure):
    before = repr(structure)

    assign_file({"path": "/s/another.pdf", "extension": "pdf"}, structure)

    assert repr(structure) == before
