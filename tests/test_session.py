"""Unit tests for the compression session."""

import logging

import pytest

import imgcompress.session as session_module
from imgcompress import (
    CompressionSession,
    DecodeError,
    InvalidQualityError,
    NoSourceError,
    TooLargeError,
    configure_logging,
)


def test_load_and_compress(photo_png):
    session = CompressionSession()
    source = session.load(photo_png, "holiday.png")

    assert source.original_size == len(photo_png)
    assert session.buffer.width == 96

    report = session.compress(70)
    assert report.encoded.quality == 70
    assert report.outcome.original_size == len(photo_png)
    assert report.outcome.compressed_size == report.encoded.length
    assert session.last_report is report
    assert session.download_name == "holiday_compressed.jpg"


def test_default_quality_is_eighty(photo_png):
    session = CompressionSession()
    session.load(photo_png)
    assert session.compress().encoded.quality == 80


def test_default_quality_from_config(photo_png):
    session = CompressionSession({"session": {"default_quality": 35}})
    session.load(photo_png)
    assert session.compress().encoded.quality == 35


def test_invalid_default_quality_rejected():
    with pytest.raises(InvalidQualityError):
        CompressionSession({"session": {"default_quality": 0}})


def test_quality_change_does_not_decode_again(photo_png, monkeypatch):
    calls = []
    real_decode = session_module.decode

    def counting_decode(*args, **kwargs):
        calls.append(1)
        return real_decode(*args, **kwargs)

    monkeypatch.setattr(session_module, "decode", counting_decode)

    session = CompressionSession()
    session.load(photo_png)
    high = session.compress(90)
    low = session.compress(20)

    assert len(calls) == 1
    assert low.encoded.length <= high.encoded.length
    assert high.encoded.quality == 90


def test_compress_without_source():
    with pytest.raises(NoSourceError):
        CompressionSession().compress(80)


def test_failed_load_keeps_previous_source(photo_png):
    session = CompressionSession()
    session.load(photo_png, "first.png")

    with pytest.raises(DecodeError):
        session.load(b"\x00\x01", "broken.png")

    assert session.source.name == "first.png"
    assert session.buffer is not None


def test_session_limits_from_config(red_png):
    session = CompressionSession({"decoder": {"max_dimension": 10}})
    with pytest.raises(TooLargeError):
        session.load(red_png)


def test_new_load_clears_last_report(photo_png, red_png):
    session = CompressionSession()
    session.load(photo_png)
    session.compress(50)
    session.load(red_png, "red.png")
    assert session.last_report is None
    assert session.download_name == "red_compressed.jpg"


def test_reset(photo_png):
    session = CompressionSession()
    session.load(photo_png, "x.png")
    session.compress(50)
    session.reset()

    assert session.source is None
    assert session.buffer is None
    assert session.last_report is None
    assert session.download_name == "compressed_image.jpg"


def test_empty_source_is_decode_error():
    with pytest.raises(DecodeError):
        CompressionSession().load(b"")


def test_report_summary(red_png):
    session = CompressionSession()
    session.load(red_png)
    summary = session.compress(80).summary()
    assert summary["quality"] == "80%"
    assert summary["original_size"].endswith(" KB")
    assert summary["reduction"].endswith("%")


def test_compress_to_size(photo_png):
    session = CompressionSession()
    session.load(photo_png)
    target = session.compressor.encode(session.buffer, 50).length
    report = session.compress_to_size(target)
    assert report.encoded.quality == 50
    assert session.last_report is report


def test_configure_logging_is_idempotent():
    logger = configure_logging(logging.DEBUG)
    handlers = list(logger.handlers)
    again = configure_logging(logging.WARNING)

    assert again is logger
    assert again.handlers == handlers
    assert again.level == logging.WARNING
