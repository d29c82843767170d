from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from serverinfo import Apps, ServerInfo, parse, parse_json, parse_xml
from serverinfo.errors import DecodeError, FieldTypeError


def _document(system: dict[str, Any] | None = None, database: dict[str, Any] | None = None) -> bytes:
    return json.dumps(
        {
            "ocs": {
                "meta": {"status": "ok", "statuscode": 200, "message": "OK"},
                "data": {
                    "nextcloud": {"system": system or {}},
                    "server": {"database": database or {}},
                },
            }
        }
    ).encode()


# ---------------------------------------------------------------------------
# Full documents
# ---------------------------------------------------------------------------
class TestParseJSON:
    def test_info_json(self, testdata: Path) -> None:
        info = parse_json((testdata / "info.json").read_bytes())

        assert info.meta.status == "ok"
        assert info.meta.status_code == 200

        system = info.data.nextcloud.system
        assert system.version == "28.0.4.1"
        assert system.enable_avatars is True
        assert system.enable_previews is True
        assert system.filelocking_enabled is True
        assert system.debug is False
        assert system.memcache_local == "\\OC\\Memcache\\APCu"
        assert system.memcache_locking == "\\OC\\Memcache\\Redis"
        assert system.free_space == 5403357556736
        assert system.apps == Apps(installed=58, available_updates=2)

        storage = info.data.nextcloud.storage
        assert storage.users == 42
        assert storage.files == 1234567
        assert storage.storages_other == 3

        shares = info.data.nextcloud.shares
        assert shares.total == 310
        assert shares.group == 40
        assert shares.link_no_password == 60
        assert shares.mail == 20
        assert shares.room == 5
        assert shares.federated_received == 10

        server = info.data.server
        assert server.webserver == "Apache/2.4.57 (Debian)"
        assert server.php.memory_limit == 536870912
        assert server.php.max_execution_time == 3600
        assert server.database.type == "mysql"
        assert server.database.size == 1532919808

        assert info.data.active_users.last_5_minutes == 3
        assert info.data.active_users.last_hour == 9
        assert info.data.active_users.last_day == 27

    def test_decoding_is_idempotent(self, testdata: Path) -> None:
        raw = (testdata / "info.json").read_bytes()
        assert parse_json(raw) == parse_json(raw)

    def test_missing_apps_decodes_to_zero(self, testdata: Path) -> None:
        info = parse_json((testdata / "missing-apps.json").read_bytes())
        assert info.data.nextcloud.system.apps == Apps(installed=0, available_updates=0)

    def test_signed_values_keep_sentinels_and_large_numbers(self, testdata: Path) -> None:
        info = parse_json((testdata / "missing-apps.json").read_bytes())
        assert info.data.nextcloud.system.free_space == -2
        assert info.data.server.php.memory_limit == -1
        assert info.data.server.php.upload_max_filesize == 9223372036854775807

    def test_empty_object_gives_zero_document(self) -> None:
        assert parse_json(b"{}") == ServerInfo()

    def test_empty_sections_as_lists(self) -> None:
        info = parse_json(_document(system={"apps": []}))
        assert info.data.nextcloud.system.apps == Apps()

    def test_unknown_fields_are_ignored(self) -> None:
        raw = json.dumps({"ocs": {"data": {"nextcloud": {"system": {"version": "29"}, "future": {"x": 1}}}}})
        assert parse_json(raw).data.nextcloud.system.version == "29"

    def test_counter_as_string(self) -> None:
        raw = json.dumps({"ocs": {"data": {"nextcloud": {"storage": {"num_users": "17"}}}}})
        assert parse_json(raw).data.nextcloud.storage.users == 17

    @pytest.mark.parametrize("raw", ["+5", " 5 "])
    def test_counter_as_signed_or_padded_string(self, raw: str) -> None:
        raw_doc = json.dumps({"ocs": {"data": {"nextcloud": {"storage": {"num_users": raw}}}}})
        assert parse_json(raw_doc).data.nextcloud.storage.users == 5

    @pytest.mark.parametrize("raw", ["1_000", "\u0661\u0662", "1.5", "0x10"])
    def test_counter_rejects_non_decimal_strings(self, raw: str) -> None:
        raw_doc = json.dumps({"ocs": {"data": {"nextcloud": {"storage": {"num_users": raw}}}}})
        with pytest.raises(FieldTypeError, match="cannot parse"):
            parse_json(raw_doc)

    def test_negative_counter_is_an_error(self) -> None:
        raw = json.dumps({"ocs": {"data": {"activeUsers": {"last5minutes": -3}}}})
        with pytest.raises(FieldTypeError) as exc_info:
            parse_json(raw)
        assert exc_info.value.field == "data.activeUsers.last5minutes"


# ---------------------------------------------------------------------------
# Booleans
# ---------------------------------------------------------------------------
@pytest.mark.parametrize(
    ("raw", "want"),
    [
        ("yes", True),
        ("no", False),
        ("", False),
        ("true", False),
        ("YES", False),
        ("1", False),
    ],
)
def test_boolean_fields(raw: str, want: bool) -> None:
    info = parse_json(_document(system={"enable_avatars": raw, "debug": raw, "filelocking.enabled": raw}))
    system = info.data.nextcloud.system
    assert system.enable_avatars is want
    assert system.debug is want
    assert system.filelocking_enabled is want


# ---------------------------------------------------------------------------
# Database size
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("raw", [12345, "12345"])
def test_database_size_number_or_string(raw: Any) -> None:
    assert parse_json(_document(database={"size": raw})).data.server.database.size == 12345


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        (-1, "negative database size"),
        ("abc", "cannot parse"),
        (None, "unexpected type"),
        ([1, 2], "unexpected type"),
        ({"bytes": 1}, "unexpected type"),
        (True, "unexpected type"),
    ],
)
def test_database_size_errors(raw: Any, message: str) -> None:
    with pytest.raises(FieldTypeError, match=message) as exc_info:
        parse_json(_document(database={"size": raw}))
    assert exc_info.value.field == "data.server.database.size"


def test_database_size_missing() -> None:
    assert parse_json(_document(database={"type": "sqlite3"})).data.server.database.size == 0


def test_database_size_empty_string() -> None:
    assert parse_json(_document(database={"size": ""})).data.server.database.size == 0


def test_database_size_empty_xml_element() -> None:
    raw = b"<ocs><data><server><database><type>sqlite3</type><size/></database></server></data></ocs>"
    assert parse_xml(raw).data.server.database.size == 0


# ---------------------------------------------------------------------------
# Malformed payloads
# ---------------------------------------------------------------------------
class TestMalformed:
    def test_empty_body(self) -> None:
        with pytest.raises(DecodeError, match="end of input"):
            parse_json(b"")

    def test_truncated_body(self) -> None:
        with pytest.raises(DecodeError, match="end of input"):
            parse_json(b'{"ocs": {"meta": ')

    def test_broken_syntax(self) -> None:
        with pytest.raises(DecodeError, match="can not parse server info"):
            parse_json(b'{"ocs": nope}')

    def test_top_level_not_an_object(self) -> None:
        with pytest.raises(DecodeError, match="unexpected top-level type list"):
            parse_json(b"[]")

    def test_section_of_wrong_type(self) -> None:
        with pytest.raises(FieldTypeError) as exc_info:
            parse_json(b'{"ocs": {"data": {"server": 5}}}')
        assert exc_info.value.field == "data.server"

    def test_field_type_error_is_decode_error(self) -> None:
        assert issubclass(FieldTypeError, DecodeError)


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------
class TestParseXML:
    def test_negative_space(self, testdata: Path) -> None:
        info = parse_xml((testdata / "negative-space.xml").read_bytes())
        system = info.data.nextcloud.system
        assert system.version == "12.0.4.3"
        assert system.free_space == -2
        assert system.enable_avatars is True
        assert system.debug is False
        assert info.data.nextcloud.shares.link == 4
        assert info.data.server.database.size == 2281472
        assert info.data.active_users.last_day == 4

    def test_na_values(self, testdata: Path) -> None:
        info = parse_xml((testdata / "na-values.xml").read_bytes())
        assert info.data.nextcloud.system.free_space == 0
        assert info.data.nextcloud.system.enable_previews is False
        assert info.data.server.php.memory_limit == 0
        assert info.data.server.php.max_execution_time == 30
        assert info.data.server.database.size == 0

    def test_broken_xml(self) -> None:
        with pytest.raises(DecodeError):
            parse_xml(b"<ocs><meta>")


class TestDispatch:
    def test_sniffs_xml(self, testdata: Path) -> None:
        raw = (testdata / "negative-space.xml").read_bytes()
        assert parse(raw) == parse_xml(raw)

    def test_defaults_to_json(self, testdata: Path) -> None:
        raw = (testdata / "info.json").read_bytes()
        assert parse(raw) == parse_json(raw)

    def test_content_type_wins(self) -> None:
        with pytest.raises(DecodeError):
            parse(b"{}", content_type="application/xml; charset=utf-8")

    def test_empty_body(self) -> None:
        with pytest.raises(DecodeError, match="end of input"):
            parse(b"")
