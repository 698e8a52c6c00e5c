from decimal import Decimal

from hostelhub.models import CommissionStatus, User
from hostelhub.services import media
from hostelhub.services.commissions import AgentBooking, build_agent_commission
from hostelhub.services.currency import format_money, get_currency_symbol
from hostelhub.services.reporting import generate_commission_csv, generate_commission_pdf

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_format_money():
    assert format_money(1500) == "₦1,500"
    assert format_money(Decimal("1234.5"), "USD") == "$1,235"
    assert format_money(None, "GBP") == "£0"
    assert format_money(-500, "NGN") == "-₦500"
    assert format_money(10, "XYZ") == "10"


def test_currency_symbol_lookup_is_case_insensitive():
    assert get_currency_symbol("ghs") == "₵"


def _agent():
    bookings = [
        AgentBooking(id=1, hostel_id=1, hostel_name="North", room_number="12", student_name="Ada",
                     booking_date="2024-05-01", amount=Decimal("90000"), commission_amount=Decimal("4500"),
                     commission_status=CommissionStatus.PAID),
        AgentBooking(id=2, hostel_id=1, hostel_name="North", room_number="14", student_name="Bayo",
                     booking_date="2024-06-01", amount=Decimal("90000"), commission_amount=Decimal("4500")),
    ]
    return build_agent_commission(agent_id=3, agent_name="Tunde", profile_image="t.jpg", active=True,
                                  verified=True, bookings=bookings)


def test_commission_csv():
    lines = generate_commission_csv(_agent()).splitlines()
    assert lines[0] == "Booking ID,Date,Hostel,Room,Student,Amount,Commission,Commission Status"
    assert lines[1] == "1,2024-05-01,North,12,Ada,90000.00,4500.00,paid"
    assert "Total commission,9000.00" in lines
    assert "Pending,4500.00" in lines


def test_commission_pdf():
    business = User(email="owner@example.com", hashed_password="x", business_name="Campus Stays", currency="NGN")
    assert generate_commission_pdf(_agent(), business).startswith(b"%PDF")


def test_cloudinary_public_id():
    url = "https://res.cloudinary.com/demo/image/upload/v1712/hostels/7/abc.jpg"
    assert media.cloudinary_public_id(url) == "hostels/7/abc"
    assert media.cloudinary_public_id("https://img.test/a.jpg") is None


def test_save_and_delete_local_image(monkeypatch, tmp_path):
    monkeypatch.setattr(media, "UPLOAD_DIR", str(tmp_path))
    url = media.save_image(PNG_BYTES, "room.png")
    assert url.startswith(media.LOCAL_URL_PREFIX) and url.endswith(".png")
    assert len(list(tmp_path.iterdir())) == 1
    assert media.delete_image(url) is True
    assert list(tmp_path.iterdir()) == []


def test_save_image_rejects_non_images_and_oversize(monkeypatch, tmp_path):
    monkeypatch.setattr(media, "UPLOAD_DIR", str(tmp_path))
    assert media.save_image(b"definitely not an image", "notes.txt") is None
    monkeypatch.setattr(media.settings, "UPLOAD_IMAGE_MAX_BYTES", 8)
    assert media.save_image(PNG_BYTES, "big.png") is None


def test_delete_unmanaged_image_is_a_noop():
    assert media.delete_image("https://img.test/a.jpg") is False
    assert media.delete_image(None) is False
