from datetime import date, timedelta

import pytest

from conftest import InMemoryQRCodes
from dental_clinic.attendance.qr import QRCodeService, haversine_meters, render_png

TODAY = date(2024, 3, 4)


@pytest.fixture
def qr_service():
    return QRCodeService(InMemoryQRCodes(), default_radius=100)


def test_haversine_one_degree_of_longitude_at_equator():
    assert haversine_meters(0, 0, 0, 1) == pytest.approx(111195, abs=1)


def test_daily_code_is_reused_for_the_same_day(qr_service):
    first = qr_service.get_or_create_daily_code(1, TODAY)
    again = qr_service.get_or_create_daily_code(1, TODAY)
    tomorrow = qr_service.get_or_create_daily_code(1, TODAY + timedelta(days=1))

    assert first.qr_code == again.qr_code
    assert tomorrow.qr_code != first.qr_code
    assert first.radius_meters == 100


def test_unknown_code_is_invalid(qr_service):
    result = qr_service.validate("not-a-code", TODAY)

    assert not result.is_valid
    assert result.message == "유효하지 않은 QR 코드입니다"


def test_yesterdays_code_is_expired(qr_service):
    code = qr_service.get_or_create_daily_code(1, TODAY - timedelta(days=1))

    result = qr_service.validate(code.qr_code, TODAY)

    assert not result.is_valid
    assert "만료" in result.message


def test_code_without_location_skips_distance_check(qr_service):
    code = qr_service.get_or_create_daily_code(1, TODAY)

    result = qr_service.validate(code.qr_code, TODAY, latitude=37.5, longitude=127.0)

    assert result.is_valid
    assert result.clinic_id == 1
    assert result.distance_meters is None


def test_scan_outside_radius_is_rejected(qr_service):
    code = qr_service.get_or_create_daily_code(1, TODAY, latitude=37.5, longitude=127.0)

    near = qr_service.validate(code.qr_code, TODAY, latitude=37.5003, longitude=127.0)
    far = qr_service.validate(code.qr_code, TODAY, latitude=37.502, longitude=127.0)

    assert near.is_valid
    assert not far.is_valid
    assert far.distance_meters == 222
    assert "100m 이내" in far.message


def test_png_rendering():
    buf = render_png("abc")

    assert buf.getvalue().startswith(b"\x89PNG")
