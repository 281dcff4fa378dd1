from bizdir.etl import transform
from bizdir.models import GeoCoordinate, ParsedAddress, RawExtractedBusiness


def test_parse_address_full_us_shape():
    parsed = transform.parse_address("100 Main St, Smithfield, NC 27577")
    assert parsed == ParsedAddress(street="100 Main St", city="Smithfield", state="NC", zip="27577")

    parsed = transform.parse_address("  9 Oak Ave, Clayton, NC 27520-1234 ")
    assert parsed.zip == "27520-1234"
    assert parsed.street == "9 Oak Ave"


def test_parse_address_partial_shapes():
    assert transform.parse_address("9 Oak Ave, Clayton, NC") == ParsedAddress(street="9 Oak Ave", city="Clayton", state="NC")
    assert transform.parse_address("Raleigh, NC") == ParsedAddress(city="Raleigh", state="NC")


def test_parse_address_unrecognised_keeps_text_as_street():
    assert transform.parse_address("Behind the courthouse") == ParsedAddress(street="Behind the courthouse")
    assert transform.parse_address("") == ParsedAddress()
    assert transform.parse_address(None) == ParsedAddress()


def test_to_business_record_applies_defaults():
    business = RawExtractedBusiness(
        name=" Acme ",
        description="x" * 1200,
        address="Behind the courthouse",
        phone="  ",
        website="https://acme.example",
        images=["a.png"],
        source="general",
    )

    row = transform.to_business_record(
        business,
        parsed=transform.parse_address(business.address),
        coordinates=None,
        category_id=None,
        default_city="Smithfield",
        default_state="NC",
        description_limit=1000,
    )

    assert row["name"] == "Acme"
    assert len(row["description"]) == 1000
    assert row["address"] == "Behind the courthouse"
    assert row["city"] == "Smithfield"
    assert row["state"] == "NC"
    assert row["zip"] == ""
    assert row["phone"] is None
    assert row["email"] is None
    assert row["website"] == "https://acme.example"
    assert row["categoryId"] is None
    assert row["latitude"] is None and row["longitude"] is None
    assert row["images"] == ["a.png"]
    assert row["source"] == "general"


def test_to_business_record_uses_parsed_parts_and_coordinates():
    business = RawExtractedBusiness(name="Joe's Cafe", address="100 Main St, Benson, NC 27504")

    row = transform.to_business_record(
        business,
        parsed=transform.parse_address(business.address),
        coordinates=GeoCoordinate(latitude=35.38, longitude=-78.54),
        category_id="cat-1",
        default_city="Smithfield",
        default_state="NC",
    )

    assert row["address"] == "100 Main St"
    assert row["city"] == "Benson"
    assert row["zip"] == "27504"
    assert row["latitude"] == 35.38
    assert row["longitude"] == -78.54
    assert row["categoryId"] == "cat-1"
