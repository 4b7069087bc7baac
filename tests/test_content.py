from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from trip_itinerary.extract.content import (
    content_hash,
    decode_str,
    eml_bytes_to_text,
    email_to_text,
    html_to_text,
)


def _mail(*parts):
    msg = MIMEMultipart("alternative")
    msg["Subject"] = "=?utf-8?b?5LqI57SE56K66KqN?="  # 予約確認
    msg["From"] = "Hotel Granvia <stay@granvia.example>"
    msg["Date"] = "Mon, 05 Jan 2026 10:00:00 +0900"
    for body, subtype in parts:
        msg.attach(MIMEText(body, subtype, "utf-8"))
    return msg


def test_html_to_text_drops_scripts_and_styles():
    html = "<style>.x{}</style><h1>Booking</h1><p>Room 1204</p><script>alert(1)</script>"
    assert html_to_text(html) == "Booking Room 1204"


def test_encoded_header():
    assert decode_str("=?utf-8?b?5LqI57SE56K66KqN?=") == "予約確認"
    assert decode_str("") == ""


def test_plain_text_part_wins():
    text = email_to_text(_mail(("Check-in 20 Jan", "plain"), ("<p>ignored</p>", "html")))
    assert text.startswith("Subject: 予約確認\nFrom: Hotel Granvia <stay@granvia.example>\n")
    assert text.endswith("---\nCheck-in 20 Jan")


def test_html_only_mail():
    text = email_to_text(_mail(("<p>Check-in <b>20 Jan</b></p>", "html")))
    assert text.endswith("---\nCheck-in 20 Jan")


def test_eml_bytes():
    raw = _mail(("Flight JL5", "plain")).as_bytes()
    assert "Flight JL5" in eml_bytes_to_text(raw)


def test_content_hash_is_stable_across_types():
    assert content_hash("booking") == content_hash(b"booking")
    assert content_hash("booking") != content_hash("booking 2")
