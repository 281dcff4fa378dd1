import json

import pytest

from bizdir.core.errors import ExtractionError
from bizdir.extractors import general, google, structured, yelp


def _json_ld(data):
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


EXAMPLE_DINER = _json_ld(
    {
        "@context": "https://schema.org",
        "@type": "LocalBusiness",
        "name": "Example Diner",
        "address": {
            "@type": "PostalAddress",
            "streetAddress": "1 Main St",
            "addressLocality": "Smithfield",
            "addressRegion": "NC",
            "postalCode": "27577",
        },
        "telephone": "(919) 555-0100",
        "image": ["/img/front.jpg", "https://cdn.example/inside.jpg"],
    }
)


def test_google_prefers_json_ld():
    html = f"<html><head><title>Wrong - Google Maps</title>{EXAMPLE_DINER}</head><body></body></html>"
    url = "https://www.google.com/maps/place/Example"

    business = google.GoogleExtractor().extract(html, url)

    assert business.name == "Example Diner"
    assert business.address == "1 Main St, Smithfield, NC 27577"
    assert business.phone == "(919) 555-0100"
    assert business.images == ["https://www.google.com/img/front.jpg", "https://cdn.example/inside.jpg"]
    assert business.website == url
    assert business.source == url


def test_google_falls_back_to_title_and_selectors():
    html = """
    <html><head><title>Joe's Cafe - Google Maps</title></head><body>
      <span class="LrzXr">100 Main St, Smithfield, NC 27577</span>
      <a href="tel:+19195550100"></a>
      <a data-value="Website" href="https://joescafe.example">joescafe.example</a>
    </body></html>
    """

    business = google.GoogleExtractor().extract(html, "https://www.google.com/maps/place/Joes")

    assert business.name == "Joe's Cafe"
    assert business.address == "100 Main St, Smithfield, NC 27577"
    assert business.phone == "+19195550100"
    assert business.website == "https://joescafe.example"


def test_google_without_name_is_an_error():
    with pytest.raises(ExtractionError):
        google.GoogleExtractor().extract("<html><body><p>Loading...</p></body></html>", "https://maps.google.com/?cid=1")


def test_yelp_meta_and_selectors():
    html = """
    <html><head><meta property="og:title" content="Joe's Cafe"></head><body>
      <address>100 Main St Smithfield, NC 27577</address>
      <a href="tel:9195550100">(919) 555-0100</a>
      <a href="https://www.facebook.com/joescafe">Facebook</a>
      <a href="https://joescafe.example">Website</a>
      <img class="photo-box" src="https://s3-media0.fl.yelpcdn.com/bphoto/a.jpg">
      <img class="photo-main" src="https://cdn.example/p.jpg">
    </body></html>
    """

    business = yelp.YelpExtractor().extract(html, "https://www.yelp.com/biz/joes-cafe-smithfield")

    assert business.name == "Joe's Cafe"
    assert business.address == "100 Main St Smithfield, NC 27577"
    assert business.phone == "(919) 555-0100"
    assert business.website == "https://joescafe.example"
    assert business.images == ["https://cdn.example/p.jpg"]


def test_yelp_website_stays_empty_when_only_yelp_links():
    html = """
    <html><head><meta name="yelp-biz-name" content="Joe's Cafe"></head><body>
      <a class="biz-website" href="https://www.yelp.com/biz_redir?url=x">Website</a>
    </body></html>
    """

    business = yelp.YelpExtractor().extract(html, "https://www.yelp.com/biz/joes")

    assert business.name == "Joe's Cafe"
    assert business.website == ""


def test_yelp_without_name_is_an_error():
    with pytest.raises(ExtractionError):
        yelp.YelpExtractor().extract("<html><body></body></html>", "https://www.yelp.com/biz/nothing")


def test_general_json_ld_with_logo():
    html = "<html><head>{}</head><body></body></html>".format(
        _json_ld(
            {
                "@context": "https://schema.org",
                "@graph": [
                    {"@type": "WebSite", "name": "Ignored"},
                    {
                        "@type": ["Organization", "Thing"],
                        "name": "Acme Hardware",
                        "url": "https://acme.example",
                        "email": "mailto:info@acme.example",
                        "logo": {"@type": "ImageObject", "url": "/logo.png"},
                        "image": "https://acme.example/store.jpg",
                    },
                ],
            }
        )
    )

    business = general.GeneralExtractor().extract(html, "https://acme.example/about")

    assert business.name == "Acme Hardware"
    assert business.email == "info@acme.example"
    assert business.website == "https://acme.example"
    assert business.images == ["https://acme.example/logo.png", "https://acme.example/store.jpg"]


def test_general_microdata_and_heuristics():
    html = """
    <html><body>
      <div itemscope itemtype="https://schema.org/LocalBusiness">
        <span itemprop="name">Acme Hardware</span>
        <span itemprop="streetAddress">12 Market St</span>
        <span itemprop="addressLocality">Clayton</span>
        <span itemprop="addressRegion">NC</span>
        <span itemprop="postalCode">27520</span>
        <span itemprop="telephone">919-555-0123</span>
      </div>
      <p>Write to us at hello@acme.example any time.</p>
      <img class="site-logo" src="/logo.png">
    </body></html>
    """

    business = general.GeneralExtractor().extract(html, "https://acme.example/about")

    assert business.name == "Acme Hardware"
    assert business.address == "12 Market St, Clayton, NC 27520"
    assert business.phone == "919-555-0123"
    assert business.email == "hello@acme.example"
    assert business.images == ["https://acme.example/logo.png"]
    assert business.website == "https://acme.example/about"


def test_general_name_from_domain():
    business = general.GeneralExtractor().extract("<html><body></body></html>", "https://www.joescafe.example/")

    assert business.name == "Joescafe"
    assert business.website == "https://www.joescafe.example/"


def test_images_are_capped_and_deduplicated():
    images = [f"https://cdn.example/{i}.jpg" for i in range(7)]
    html = _json_ld({"@type": "Store", "name": "Big Store", "image": images[:1] + images})

    business = general.GeneralExtractor().extract(html, "https://bigstore.example")

    assert business.images == images[:5]


def test_invalid_json_ld_is_skipped():
    soup = structured.load_soup('<script type="application/ld+json">{not json</script>' + EXAMPLE_DINER)
    assert [item["name"] for item in structured.iter_json_ld(soup)] == ["Example Diner"]


def test_flatten_address():
    assert structured.flatten_address("1 Main St, Smithfield") == "1 Main St, Smithfield"
    assert structured.flatten_address({"streetAddress": "1 Main St", "addressRegion": "NC"}) == "1 Main St, NC"
    assert structured.flatten_address({"addressLocality": "Smithfield"}) == ""
