"""
BloomFrame Backend — Invoice View-Model Builder Tests
=======================================================

What we test:
    ✅ Item numbering counts frames and the paperweight only
    ✅ Sub-items appear only for prices above zero
    ✅ Mount label carries colour and the Buttonhole suffix
    ✅ "Other" rows for order extras
    ✅ Address, display name, dates and totals
"""

from datetime import date

from bloomframe.schemas.invoice import InvoicePayload
from bloomframe.services.invoice_builder import (
    build_address,
    build_display_name,
    build_invoice_rows,
    build_invoice_view_model,
)


def payload_of(data: dict) -> InvoicePayload:
    return InvoicePayload.model_validate(data)


def cells(rows):
    return [(row.item_label, row.description, row.amount, row.is_sub_item) for row in rows]


class TestInvoiceRows:

    def test_sample_payload_rows(self, sample_payload):
        rows = build_invoice_rows(payload_of(sample_payload))
        assert cells(rows) == [
            ("Item 1", "Picture, 30x40, Oak frame, Museum glass", "£100.00", False),
            ("", "Mount - Ivory - Buttonhole", "£20.00", True),
            ("Item 2", "Paperweight - Quantity 2", "£60.00", False),
            ("Other", "Delivery - Qty 1", "£12.00", False),
        ]

    def test_numbering_skips_sub_items(self):
        rows = build_invoice_rows(payload_of({
            "frames": [
                {"price": 50, "extras": {"mountPrice": 5, "glassPrice": 6, "glassEngravingPrice": 7}},
                {"price": 70},
            ],
            "paperweight": {"price": 30},
        }))
        assert [row.item_label for row in rows] == ["Item 1", "", "", "", "Item 2", "Item 3"]

    def test_zero_mount_price_has_no_mount_row(self):
        rows = build_invoice_rows(payload_of({
            "frames": [{"price": 80, "mountColour": "White", "extras": {"mountPrice": 0}}],
        }))
        assert len(rows) == 1
        assert not any("Mount" in row.description for row in rows)

    def test_mount_without_colour_keeps_buttonhole_suffix(self):
        rows = build_invoice_rows(payload_of({
            "frames": [{"inclusions": "Buttonhole", "extras": {"mountPrice": 15}}],
        }))
        assert rows[1].description == "Mount - Buttonhole"

    def test_glass_and_engraving_rows(self):
        rows = build_invoice_rows(payload_of({
            "frames": [{
                "glassType": "UV glass",
                "glassEngraving": " Forever ",
                "extras": {"glassPrice": "25", "glassEngravingPrice": 10},
            }],
        }))
        assert [row.description for row in rows[1:]] == [
            "Glass - UV glass",
            'Glass engraving - "Forever"',
        ]
        assert all(row.is_sub_item for row in rows[1:])

    def test_frame_without_price_shows_zero(self):
        rows = build_invoice_rows(payload_of({"frames": [{"frameType": "Walnut"}]}))
        assert cells(rows) == [("Item 1", "Picture, Walnut frame", "£0.00", False)]

    def test_paperweight_without_price_is_skipped(self):
        rows = build_invoice_rows(payload_of({"paperweight": {"quantity": 2}}))
        assert rows == []

    def test_paperweight_quantity_defaults_to_one(self):
        rows = build_invoice_rows(payload_of({"paperWeightOrder": {"price": 40}}))
        assert rows[0].description == "Paperweight - Quantity 1"
        assert rows[0].item_label == "Item 1"

    def test_other_rows(self):
        rows = build_invoice_rows(payload_of({
            "orderExtras": {
                "replacementFlowers": True,
                "replacementFlowersQty": 3,
                "replacementFlowersPrice": 45,
                "collectionPrice": 0,
                "deliveryPrice": 12,
                "returnUnusedFlowers": True,
                "returnUnusedFlowersPrice": 8,
            },
        }))
        assert cells(rows) == [
            ("Other", "Replacement flowers - Qty 3", "£45.00", False),
            ("Other", "Delivery", "£12.00", False),
            ("Other", "Return of unframed flowers charge", "£8.00", False),
        ]


class TestAddressAndName:

    def test_display_name_wins(self):
        payload = payload_of({"customer": {"displayName": " The Does ", "firstName": "Jane"}})
        assert build_display_name(payload) == "The Does"

    def test_display_name_from_parts(self):
        payload = payload_of({"customer": {"firstName": "Jane", "surname": "Doe"}})
        assert build_display_name(payload) == "Jane Doe"

    def test_address_skips_blank_lines(self, sample_payload):
        assert build_address(payload_of(sample_payload)) == (
            "Mrs Jane Doe\n1 High Street\nBath\nBA1 1AA"
        )

    def test_empty_address(self):
        assert build_address(payload_of({})) == "-"


class TestViewModel:

    def test_sample_view_model(self, sample_payload):
        vm = build_invoice_view_model(payload_of(sample_payload), today=date(2024, 3, 5))
        assert vm.invoice_no == "1042"
        assert vm.invoice_date == "05/03/2024"
        assert vm.occasion_date == "01/06/2024"
        assert vm.notes == "Leave with the neighbour"
        assert vm.sub_total == "£120.00"
        assert vm.vat_total == "£24.00"
        assert vm.grand_total == "£144.00"
        assert vm.credits == "£144.00"
        assert vm.balance_due == "£0.00"
        assert len(vm.rows) == 4

    def test_missing_sections(self):
        vm = build_invoice_view_model(payload_of({}), today=date(2024, 1, 2))
        assert vm.invoice_no == "-"
        assert vm.occasion_date == "-"
        assert vm.notes == ""
        assert vm.rows == []
        assert vm.grand_total == "£0.00"
