import re
import time

from reactornet.timestamp import Timestamp

FORMAT = re.compile(r"^\d{4}/\d{2} \d{2}:\d{2}:\d{2}$")


def test_default_is_epoch():
    assert Timestamp().seconds_since_epoch == 0


def test_now_is_close_to_current_time():
    before = int(time.time())
    stamp = Timestamp.now()
    after = int(time.time())
    assert before <= stamp.seconds_since_epoch <= after


def test_to_string_matches_format():
    text = Timestamp.now().to_string()
    match = FORMAT.match(text)
    assert match is not None
    assert match.group(0) == text
    assert len(text) == 16


def test_to_string_year_and_month():
    # Mid-November 2023, the same month in every timezone.
    assert Timestamp(1_700_000_000).to_string().startswith("2023/11 ")


def test_str_equals_to_string():
    stamp = Timestamp(1_700_000_000)
    assert str(stamp) == stamp.to_string()


def test_ordering_and_equality():
    assert Timestamp(5) < Timestamp(6)
    assert Timestamp(7) == Timestamp(7)