import io

import pytest

from mqttkit.topic import (
    InvalidLevelError,
    InvalidTopicError,
    Level,
    LevelKind,
    Topic,
    TopicError,
    match_level,
    write_topic,
)

BLANK = Level(LevelKind.BLANK)
SINGLE = Level(LevelKind.SINGLE_WILDCARD)
MULTI = Level(LevelKind.MULTI_WILDCARD)


def test_level():
    assert Level.normal("sport").is_normal()
    assert Level.metadata("$SYS").is_metadata()

    assert Level.normal("sport").value == "sport"
    assert Level.metadata("$SYS").value == "$SYS"

    assert Level.normal("sport") == Level.parse("sport")
    assert Level.metadata("$SYS") == Level.parse("$SYS")

    assert Level(LevelKind.NORMAL, "sport").is_valid()
    assert Level(LevelKind.METADATA, "$SYS").is_valid()

    assert not Level(LevelKind.NORMAL, "$sport").is_valid()
    assert not Level(LevelKind.METADATA, "SYS").is_valid()

    assert not Level(LevelKind.NORMAL, "sport#").is_valid()
    assert not Level(LevelKind.METADATA, "SYS+").is_valid()


def test_level_constructors_reject_bad_values():
    with pytest.raises(ValueError):
        Level.normal("$sport")
    with pytest.raises(ValueError):
        Level.normal("a+b")
    with pytest.raises(ValueError):
        Level.metadata("SYS")
    with pytest.raises(InvalidLevelError):
        Level.parse("sport#")


def test_valid_topic():
    assert Topic([Level.normal("sport"), Level.normal("tennis"), Level.normal("player1")]).is_valid()
    assert Topic([Level.normal("sport"), Level.normal("tennis"), MULTI]).is_valid()
    assert Topic([Level.metadata("$SYS"), Level.normal("tennis"), MULTI]).is_valid()
    assert Topic([Level.normal("sport"), SINGLE, Level.normal("player1")]).is_valid()

    assert not Topic([Level.normal("sport"), MULTI, Level.normal("player1")]).is_valid()
    assert not Topic(
        [Level.normal("sport"), Level.metadata("$SYS"), Level.normal("player1")]
    ).is_valid()


def test_parse_topic():
    assert Topic.parse("sport/tennis/player1").matches(
        Topic([Level.normal("sport"), Level.normal("tennis"), Level.normal("player1")])
    )
    assert Topic.parse("").matches(Topic([BLANK]))
    assert Topic.parse("/finance").matches(Topic([BLANK, Level.normal("finance")]))
    assert Topic.parse("$SYS").matches(Topic([Level.metadata("$SYS")]))
    with pytest.raises(InvalidTopicError):
        Topic.parse("sport/$SYS")


def test_multi_wildcard_topic():
    assert Topic.parse("sport/tennis/#").matches(
        Topic([Level.normal("sport"), Level.normal("tennis"), MULTI])
    )
    assert Topic.parse("#").matches(Topic([MULTI]))
    with pytest.raises(TopicError):
        Topic.parse("sport/tennis#")
    with pytest.raises(TopicError):
        Topic.parse("sport/tennis/#/ranking")


def test_single_wildcard_topic():
    assert Topic.parse("+").matches(Topic([SINGLE]))
    assert Topic.parse("+/tennis/#").matches(Topic([SINGLE, Level.normal("tennis"), MULTI]))
    assert Topic.parse("sport/+/player1").matches(
        Topic([Level.normal("sport"), SINGLE, Level.normal("player1")])
    )
    with pytest.raises(TopicError):
        Topic.parse("sport+")


def test_write_topic():
    buf = io.BytesIO()
    t = Topic([SINGLE, Level.normal("tennis"), MULTI])
    assert write_topic(buf, t) == 10
    assert buf.getvalue() == b"+/tennis/#"
    assert str(t) == "+/tennis/#"


def test_matches():
    assert match_level("test", Level.normal("test"))
    assert match_level("$SYS", Level.metadata("$SYS"))

    t = Topic.parse("sport/tennis/player1/#")
    assert t.matches_str("sport/tennis/player1")
    assert t.matches_str("sport/tennis/player1/ranking")
    assert t.matches_str("sport/tennis/player1/score/wimbledon")

    assert Topic.parse("sport/#").matches_str("sport")

    t = Topic.parse("sport/tennis/+")
    assert t.matches_str("sport/tennis/player1")
    assert t.matches_str("sport/tennis/player2")
    assert not t.matches_str("sport/tennis/player1/ranking")

    t = Topic.parse("sport/+")
    assert not t.matches_str("sport")
    assert t.matches_str("sport/")

    assert Topic.parse("+/+").matches_str("/finance")
    assert Topic.parse("/+").matches_str("/finance")
    assert not Topic.parse("+").matches_str("/finance")

    assert not Topic.parse("#").matches_str("$SYS")
    assert not Topic.parse("+/monitor/Clients").matches_str("$SYS/monitor/Clients")
    assert Topic.parse("$SYS/#").matches_str("$SYS/")
    assert Topic.parse("$SYS/monitor/+").matches_str("$SYS/monitor/Clients")


def test_str_round_trip_and_sequence_protocol():
    text = "$SYS/broker/+/#"
    t = Topic.parse(text)
    assert str(t) == text
    assert len(t) == 4
    assert list(t)[0] == Level.metadata("$SYS")
    assert Topic.parse(str(t)) == t