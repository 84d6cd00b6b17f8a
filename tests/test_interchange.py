"""Tests for the format converter (canonical and legacy documents).

Uses the amplifier fixture (see tests/amplifier_fixture.py):
  - U1 chip, P1 passive, NET1 label, junc-1, three connections

Validates:
  - Canonical export: Y flipped, counter-clockwise pin numbers, net
    labels referenced by id, no negative zeros
  - Canonical round trip rebuilds the same geometry and bindings exactly
  - Custom pin spacing is recovered from literal pin coordinates
  - Off-grid pins and bad references are counted, never silently dropped
  - Legacy export/import keeps ids and infers pins from path endpoints
  - Structural failures raise DocumentError with a location
  - Boxes without an id still import, under a generated id or designator
"""

from __future__ import annotations

import json
import math
import tempfile
import unittest
from datetime import date
from pathlib import Path

from schemlayout.__main__ import main as cli_main
from schemlayout.interchange import (
    DocumentError,
    detect_format, export_document, import_document, layout_to_canonical,
    layout_to_legacy, parse_document, pin_by_number, pin_number,
    pins_in_number_order,
)
from schemlayout.model.models import Chip, JunctionRef, Layout, Pin, UnresolvedRef
from schemlayout.model.sizing import pin_margin, pins_on_side
from schemlayout.operations import add_chip, set_pin_margins
from schemlayout.session import EditorSession
from schemlayout.web.naming import document_filename, text_hash
from tests.amplifier_fixture import make_amplifier_layout


def _rounded(obj, digits: int = 6):
    """Recursively round floats so documents compare by value."""
    if isinstance(obj, float):
        return round(obj, digits) + 0.0
    if isinstance(obj, dict):
        return {k: _rounded(v, digits) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_rounded(v, digits) for v in obj]
    return obj


def _floats(obj):
    if isinstance(obj, float):
        yield obj
    elif isinstance(obj, dict):
        for v in obj.values():
            yield from _floats(v)
    elif isinstance(obj, list):
        for v in obj:
            yield from _floats(v)


def _boxes_by_pin_number(doc: dict) -> list[dict]:
    boxes = []
    for box in doc["boxes"]:
        box = dict(box)
        box["pins"] = sorted(box["pins"], key=lambda p: p["pinNumber"])
        boxes.append(box)
    return _rounded(boxes)


def _pin_key(layout: Layout, endpoint):
    """(component name, side, index) of a pin endpoint."""
    comp = layout.component(endpoint.component_id)
    pin = next(p for p in comp.pins if p.id == endpoint.pin_id)
    return (comp.name, pin.side, pin.index)


CUSTOM_MARGIN_DOC = {
    "boxes": [{
        "boxId": "U5",
        "leftPinCount": 2, "rightPinCount": 0, "topPinCount": 0, "bottomPinCount": 0,
        "centerX": -0.2, "centerY": -0.2,
        "pins": [
            {"pinNumber": 1, "x": -0.4, "y": 0.0},
            {"pinNumber": 2, "x": -0.4, "y": -0.4},
        ],
    }],
    "netLabels": [
        {"netId": "GND", "netLabelId": "nl-1", "anchorPosition": "left", "x": -1.4, "y": -0.4},
    ],
    "paths": [{
        "points": [{"x": -0.4, "y": -0.4}, {"x": -1.4, "y": -0.4}],
        "from": {"boxId": "U5", "pinNumber": 2},
        "to": {"netLabelId": "nl-1"},
    }],
    "junctions": [],
}


def _custom_margin_doc(**path_overrides) -> dict:
    doc = json.loads(json.dumps(CUSTOM_MARGIN_DOC))
    doc["paths"][0].update(path_overrides)
    return doc


class TestPinNumbering(unittest.TestCase):
    """Counter-clockwise pin numbering."""

    def test_chip_numbering(self):
        amp = make_amplifier_layout()
        chip = amp.chip
        left = pins_on_side(chip.pins, "left")
        right = pins_on_side(chip.pins, "right")
        self.assertEqual([p.id for p in pins_in_number_order(chip)],
                         [left[0].id, left[1].id, right[1].id, right[0].id])
        self.assertEqual(pin_number(chip, right[0]), 4)
        self.assertIs(pin_by_number(chip, 3), right[1])
        self.assertIsNone(pin_by_number(chip, 5))
        self.assertIsNone(pin_by_number(chip, 0))

    def test_passive_numbering(self):
        amp = make_amplifier_layout()
        bottom = pins_on_side(amp.passive.pins, "bottom")[0]
        top = pins_on_side(amp.passive.pins, "top")[0]
        self.assertEqual(pin_number(amp.passive, bottom), 1)
        self.assertEqual(pin_number(amp.passive, top), 2)
        self.assertIs(pin_by_number(amp.passive, 2), top)
        self.assertIsNone(pin_by_number(amp.passive, 3))

    def test_four_sided_numbering(self):
        chip = Chip(id="c", name="U1", x=0, y=0, pins=[
            Pin(id="t0", side="top", index=0),
            Pin(id="r0", side="right", index=0),
            Pin(id="b0", side="bottom", index=0),
            Pin(id="l0", side="left", index=0),
        ])
        self.assertEqual([p.id for p in pins_in_number_order(chip)], ["l0", "b0", "r0", "t0"])


class TestCanonicalExport(unittest.TestCase):

    def setUp(self):
        self.amp = make_amplifier_layout()
        self.doc = layout_to_canonical(self.amp.layout)

    def test_top_level_arrays(self):
        self.assertEqual(set(self.doc), {"boxes", "netLabels", "paths", "junctions"})
        self.assertEqual(len(self.doc["boxes"]), 2)
        self.assertEqual(len(self.doc["netLabels"]), 1)
        self.assertEqual(len(self.doc["paths"]), 3)

    def test_chip_box(self):
        box = _boxes_by_pin_number(self.doc)[0]
        self.assertEqual(box["boxId"], "U1")
        self.assertEqual((box["leftPinCount"], box["rightPinCount"]), (2, 2))
        self.assertEqual((box["topPinCount"], box["bottomPinCount"]), (0, 0))
        self.assertEqual((box["centerX"], box["centerY"]), (0.0, -0.1))
        self.assertEqual(
            [(p["pinNumber"], p["x"], p["y"]) for p in box["pins"]],
            [(1, -0.4, 0.0), (2, -0.4, -0.2), (3, 0.4, -0.2), (4, 0.4, 0.0)],
        )

    def test_passive_box(self):
        box = _boxes_by_pin_number(self.doc)[1]
        self.assertEqual(box["boxId"], "P1")
        self.assertEqual((box["topPinCount"], box["bottomPinCount"]), (1, 1))
        self.assertEqual(
            [(p["pinNumber"], p["x"], p["y"]) for p in box["pins"]],
            [(1, 2.0, -0.6), (2, 2.0, 0.4)],
        )

    def test_net_label(self):
        nl = _rounded(self.doc["netLabels"][0])
        self.assertEqual(nl["netId"], "NET1")
        self.assertEqual(nl["netLabelId"], self.amp.label.id)
        self.assertEqual(nl["anchorPosition"], "left")
        self.assertEqual((nl["x"], nl["y"]), (2.0, 1.2))

    def test_effective_anchor_exported(self):
        self.amp.label.rotation = 90
        doc = layout_to_canonical(self.amp.layout)
        self.assertEqual(doc["netLabels"][0]["anchorPosition"], "top")

    def test_path_refs(self):
        out, bias, vcc = self.doc["paths"]
        self.assertEqual(out["from"], {"boxId": "U1", "pinNumber": 3})
        self.assertEqual(out["to"], {"junctionId": "junc-1"})
        self.assertEqual(bias["to"], {"boxId": "P1", "pinNumber": 1})
        self.assertEqual(vcc["from"], {"boxId": "P1", "pinNumber": 2})
        self.assertEqual(vcc["to"], {"netLabelId": self.amp.label.id})
        self.assertEqual(_rounded(out["points"]), [{"x": 0.4, "y": -0.2}, {"x": 1.0, "y": -0.2}])

    def test_junctions(self):
        self.assertEqual(_rounded(self.doc["junctions"]), [{"junctionId": "junc-1", "x": 1.0, "y": -0.2}])

    def test_no_negative_zero(self):
        for v in _floats(self.doc):
            if v == 0:
                self.assertEqual(math.copysign(1.0, v), 1.0)

    def test_unresolved_endpoint_exported_as_unknown(self):
        self.amp.vcc.source = UnresolvedRef("unknown-box:U7")
        doc = layout_to_canonical(self.amp.layout)
        self.assertEqual(doc["paths"][2]["from"], {"junctionId": "unknown"})

    def test_export_document_text(self):
        text = export_document(self.amp.layout)
        self.assertIn('\n  "boxes": [', text)
        self.assertEqual(json.loads(text)["boxes"][0]["boxId"], "U1")
        with self.assertRaises(ValueError):
            export_document(self.amp.layout, "xml")


class TestCanonicalImport(unittest.TestCase):

    def setUp(self):
        self.amp = make_amplifier_layout()
        self.doc = layout_to_canonical(self.amp.layout)
        self.result = import_document(json.dumps(self.doc))
        self.layout = self.result.layout

    def test_exact(self):
        self.assertEqual(self.result.format, "canonical")
        self.assertTrue(self.result.exact)
        self.assertEqual(self.result.warnings, [])

    def test_geometry_round_trip(self):
        again = layout_to_canonical(self.layout)
        self.assertEqual(_boxes_by_pin_number(again), _boxes_by_pin_number(self.doc))
        self.assertEqual(_rounded(again["junctions"]), _rounded(self.doc["junctions"]))
        self.assertEqual(
            [_rounded(p["points"]) for p in again["paths"]],
            [_rounded(p["points"]) for p in self.doc["paths"]],
        )

    def test_bindings_round_trip(self):
        out, bias, vcc = self.layout.connections
        self.assertEqual(_pin_key(self.layout, out.source), ("U1", "right", 1))
        self.assertEqual(out.target, JunctionRef("junc-1"))
        self.assertEqual(_pin_key(self.layout, bias.target), ("P1", "bottom", 0))
        self.assertEqual(_pin_key(self.layout, vcc.target), ("NET1", "center", 0))

    def test_new_ids(self):
        self.assertNotEqual(self.layout.chips()[0].id, self.amp.chip.id)
        self.assertNotEqual(self.layout.net_labels()[0].id, self.amp.label.id)

    def test_counters_continue(self):
        c = self.layout.counters
        self.assertEqual((c.chip, c.passive, c.net_label, c.junction), (2, 2, 2, 2))

    def test_custom_margins_recovered(self):
        result = import_document(CUSTOM_MARGIN_DOC)
        self.assertTrue(result.exact)
        chip = result.layout.chips()[0]
        self.assertEqual(chip.name, "U5")
        left = pins_on_side(chip.pins, "left")
        self.assertEqual(len(left), 2)
        self.assertAlmostEqual(left[1].margin_from_last, 0.4)
        self.assertAlmostEqual(chip.height, 0.8)
        self.assertAlmostEqual(chip.width, 0.4)
        conn = result.layout.connections[0]
        self.assertEqual(_pin_key(result.layout, conn.source), ("U5", "left", 1))
        self.assertEqual(result.layout.counters.chip, 6)

    def test_off_grid_margin_round_trip(self):
        """A margin set off the grid comes back as the same spacing."""
        layout = Layout()
        chip = add_chip(layout, 0.0, 0.0, pins_per_side=3)
        second = pins_on_side(chip.pins, "left")[1]
        self.assertTrue(set_pin_margins(layout, chip.id, {second.id: 0.3}))
        self.assertAlmostEqual(chip.height, 1.0)

        result = import_document(export_document(layout))
        self.assertTrue(result.exact)
        loaded = result.layout.chips()[0]
        self.assertAlmostEqual(loaded.height, chip.height)
        for side in ("left", "right"):
            self.assertEqual(
                [round(pin_margin(p), 6) for p in pins_on_side(loaded.pins, side)],
                [round(pin_margin(p), 6) for p in pins_on_side(chip.pins, side)],
            )
        self.assertEqual(_boxes_by_pin_number(layout_to_canonical(result.layout)),
                         _boxes_by_pin_number(layout_to_canonical(layout)))

    def test_top_bottom_pins_round_trip(self):
        layout = Layout(components=[Chip(id="c", name="U1", x=0.0, y=0.0, pins=[
            Pin(id="l0", side="left", index=0),
            Pin(id="r0", side="right", index=0),
            Pin(id="t0", side="top", index=0),
            Pin(id="b0", side="bottom", index=0),
        ])])
        doc = layout_to_canonical(layout)
        result = import_document(doc)
        chip = result.layout.chips()[0]
        self.assertEqual(sorted(p.side for p in chip.pins), ["bottom", "left", "right", "top"])
        self.assertEqual(_boxes_by_pin_number(layout_to_canonical(result.layout)),
                         _boxes_by_pin_number(doc))

    def test_horizontal_passive_detected(self):
        doc = {
            "boxes": [{
                "boxId": "R1",
                "leftPinCount": 1, "rightPinCount": 1, "topPinCount": 0, "bottomPinCount": 0,
                "centerX": 1.1, "centerY": 0.0,
                "pins": [{"pinNumber": 1, "x": 0.6, "y": 0.0}, {"pinNumber": 2, "x": 1.6, "y": 0.0}],
            }],
            "netLabels": [], "paths": [], "junctions": [],
        }
        layout = import_document(doc).layout
        passive = layout.passives()[0]
        self.assertEqual(passive.rotation, 90)
        self.assertAlmostEqual(passive.x, 1.1)
        self.assertAlmostEqual(passive.y, 0.0)

    def test_off_grid_pin_bound_by_number(self):
        """A pin that cannot be placed where the document says is approximated."""
        doc = _custom_margin_doc()
        doc["boxes"][0]["pins"][1]["y"] = -0.5
        result = import_document(doc)
        self.assertEqual(result.approximated, 1)
        self.assertFalse(result.exact)
        conn = result.layout.connections[0]
        self.assertEqual(_pin_key(result.layout, conn.source), ("U5", "left", 1))

    def test_unknown_pin_dangles(self):
        result = import_document(_custom_margin_doc(**{"from": {"boxId": "U5", "pinNumber": 9}}))
        self.assertEqual(result.dangling, 1)
        conn = result.layout.connections[0]
        self.assertTrue(conn.is_dangling)
        self.assertIsInstance(conn.source, UnresolvedRef)
        self.assertEqual(conn.path[0], (-0.4, 0.4))
        self.assertTrue(result.warnings)

    def test_unknown_box_and_junction_dangle(self):
        result = import_document(_custom_margin_doc(**{
            "from": {"boxId": "U99", "pinNumber": 1},
            "to": {"junctionId": "junc-404"},
        }))
        self.assertEqual(result.dangling, 2)
        self.assertEqual(len(result.layout.connections), 1)

    def test_net_label_bound_by_name(self):
        result = import_document(_custom_margin_doc(to={"netId": "GND"}))
        self.assertTrue(result.exact)
        conn = result.layout.connections[0]
        self.assertEqual(_pin_key(result.layout, conn.target), ("GND", "center", 0))

    def test_dangling_survives_export(self):
        result = import_document(_custom_margin_doc(**{"from": {"boxId": "U5", "pinNumber": 9}}))
        doc = layout_to_canonical(result.layout)
        self.assertEqual(doc["paths"][0]["from"], {"junctionId": "unknown"})


class TestLegacy(unittest.TestCase):

    def setUp(self):
        self.amp = make_amplifier_layout()
        self.doc = layout_to_legacy(self.amp.layout)

    def test_export_shape(self):
        box = self.doc["boxes"][0]
        self.assertEqual(box["boxId"], self.amp.chip.id)
        self.assertEqual(box["name"], "U1")
        self.assertNotIn("pins", box)
        out = self.doc["paths"][0]
        self.assertEqual(out["pathId"], self.amp.out.id)
        self.assertEqual(out["from"], {"boxId": self.amp.chip.id})
        nl = self.doc["netLabels"][0]
        self.assertEqual((nl["netLabelId"], nl["netName"]), (self.amp.label.id, "NET1"))
        self.assertEqual((nl["anchorPosition"], nl["rotation"]), ("left", 0))

    def test_round_trip_keeps_ids(self):
        result = import_document(json.dumps(self.doc))
        self.assertEqual(result.format, "legacy")
        self.assertTrue(result.exact)
        layout = result.layout
        self.assertIsNotNone(layout.component(self.amp.chip.id))
        self.assertIsNotNone(layout.connection(self.amp.out.id))
        out = layout.connection(self.amp.out.id)
        self.assertEqual(_pin_key(layout, out.source), ("U1", "right", 1))
        vcc = layout.connection(self.amp.vcc.id)
        self.assertEqual(_pin_key(layout, vcc.source), ("P1", "top", 0))
        self.assertEqual(_pin_key(layout, vcc.target), ("NET1", "center", 0))

    def test_nearest_pin_tie_goes_to_lowest_number(self):
        doc = {
            "boxes": [{
                "boxId": "b1",
                "leftPinCount": 2, "rightPinCount": 0, "topPinCount": 0, "bottomPinCount": 0,
                "centerX": 0.0, "centerY": 0.0,
            }],
            "paths": [{
                "pathId": "w1",
                "points": [{"x": -0.2, "y": -0.1}, {"x": -1.0, "y": -0.1}],
                "from": {"boxId": "b1"},
                "to": {"junctionId": "j1"},
            }],
            "junctions": [{"junctionId": "j1", "x": -1.0, "y": -0.1}],
            "netLabels": [],
        }
        result = import_document(doc)
        self.assertEqual(result.approximated, 1)
        self.assertIn("Pin reconstruction is approximate.", result.warnings)
        layout = result.layout
        self.assertEqual(layout.chips()[0].name, "U1")
        conn = layout.connection("w1")
        self.assertEqual(_pin_key(layout, conn.source), ("U1", "left", 0))
        self.assertEqual(layout.counters.junction, 2)

    def test_unknown_box_dangles(self):
        self.doc["paths"][0]["from"] = {"boxId": "ghost"}
        result = import_document(self.doc)
        self.assertEqual(result.dangling, 1)
        self.assertTrue(result.layout.connection(self.amp.out.id).is_dangling)

    def test_box_without_id_gets_generated_id(self):
        doc = json.loads(json.dumps(self.doc))
        del doc["boxes"][0]["boxId"]
        result = import_document(doc)
        chip = result.layout.chips()[0]
        self.assertTrue(chip.id.startswith("loaded-box-"))
        self.assertEqual(chip.name, "U1")
        self.assertTrue(any("no boxId" in w for w in result.warnings))
        self.assertIsNotNone(result.layout.component(self.amp.passive.id))

    def test_canonical_box_without_id_gets_designator(self):
        doc = json.loads(json.dumps(CUSTOM_MARGIN_DOC))
        del doc["boxes"][0]["boxId"]
        result = import_document(doc)
        self.assertEqual(result.layout.chips()[0].name, "U1")
        self.assertTrue(any("no boxId" in w for w in result.warnings))
        self.assertEqual(result.dangling, 1)


class TestParsing(unittest.TestCase):

    def test_detect_format(self):
        empty = {"boxes": [], "netLabels": [], "paths": [], "junctions": []}
        self.assertEqual(detect_format(empty), "canonical")
        self.assertEqual(detect_format({**empty, "boxes": [{"pins": []}]}), "canonical")
        self.assertEqual(detect_format({**empty, "boxes": [{"boxId": "a"}]}), "legacy")
        self.assertEqual(detect_format({**empty, "paths": [{"pathId": "p"}]}), "legacy")

    def test_invalid_json(self):
        with self.assertRaises(DocumentError):
            import_document("{not json")

    def test_invalid_utf8(self):
        with self.assertRaises(DocumentError):
            import_document(b'{"boxes": [], "netLabels": ["\xff"], "paths": [], "junctions": []}')

    def test_top_level_must_be_object(self):
        with self.assertRaises(DocumentError):
            parse_document("[]")

    def test_missing_array(self):
        with self.assertRaises(DocumentError) as cm:
            parse_document({"boxes": [], "netLabels": [], "paths": []})
        self.assertEqual(cm.exception.path, "junctions")

    def test_malformed_entry_located(self):
        doc = {
            "boxes": [{"boxId": "U1", "centerY": 0.0, "pins": []}],
            "netLabels": [], "paths": [], "junctions": [],
        }
        with self.assertRaises(DocumentError) as cm:
            parse_document(json.dumps(doc))
        self.assertTrue(cm.exception.path.startswith("boxes.0"))

    def test_failed_load_leaves_session_untouched(self):
        session = EditorSession(layout=make_amplifier_layout().layout)
        before = session.layout
        with self.assertRaises(DocumentError):
            session.load_document("{}")
        self.assertIs(session.layout, before)
        self.assertEqual(len(session.layout.connections), 3)


class TestExportNaming(unittest.TestCase):

    def test_hash(self):
        self.assertEqual(text_hash(""), 0)
        self.assertEqual(text_hash("a"), 97)
        self.assertEqual(text_hash("ab"), 97 * 31 + 98)

    def test_hash_wraps_to_32_bits(self):
        self.assertLess(text_hash("x" * 1000), 2 ** 32)

    def test_filename(self):
        self.assertEqual(document_filename("ab", date(2024, 1, 2)), "corpus2024-01-02-00000c21.json")

    def test_filename_follows_exact_text(self):
        """Whole-number floats written two ways give two different names."""
        today = date(2024, 1, 2)
        self.assertEqual(document_filename('{"x": 1.0}', today), document_filename('{"x": 1.0}', today))
        self.assertNotEqual(document_filename('{"x": 1.0}', today), document_filename('{"x": 1}', today))

    def test_session_export(self):
        session = EditorSession(layout=make_amplifier_layout().layout)
        name, text = session.export("legacy", today=date(2024, 5, 6))
        self.assertTrue(name.startswith("corpus2024-05-06-"))
        self.assertEqual(name, document_filename(text, date(2024, 5, 6)))
        self.assertIn("pathId", text)


class TestConvertCommand(unittest.TestCase):

    def test_convert_to_legacy(self):
        text = export_document(make_amplifier_layout().layout)
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "in.json"
            dst = Path(tmp) / "out.json"
            src.write_text(text, encoding="utf-8")
            self.assertEqual(cli_main(["convert", str(src), str(dst), "--legacy"]), 0)
            out = json.loads(dst.read_text(encoding="utf-8"))
        self.assertEqual(len(out["paths"]), 3)
        self.assertIn("pathId", out["paths"][0])

    def test_convert_rejects_bad_document(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "in.json"
            src.write_text("[]", encoding="utf-8")
            self.assertEqual(cli_main(["convert", str(src), str(Path(tmp) / "out.json")]), 1)


if __name__ == "__main__":
    unittest.main()
