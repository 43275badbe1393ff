"""Tests for domain/params.py — pure Python parameter readers."""

import pytest

from matrix_actions.domain.errors import InvalidParameterError, MissingParameterError
from matrix_actions.domain.models import param
from matrix_actions.domain.params import (
    extract_params,
    read_bool_param,
    read_json_list_param,
    read_number_param,
    read_string_param,
    split_list_param,
)


class TestReadStringParam:
    def test_trims_by_default(self):
        assert read_string_param({"to": "  !room:example.org "}, "to") == "!room:example.org"

    def test_trim_disabled_keeps_whitespace(self):
        assert read_string_param({"content": "  hi  "}, "content", trim=False) == "  hi  "

    def test_missing_optional_is_none(self):
        assert read_string_param({}, "threadId") is None

    def test_missing_required_raises(self):
        with pytest.raises(MissingParameterError) as exc:
            read_string_param({}, "to", required=True)
        assert exc.value.field == "to"

    def test_blank_required_raises(self):
        with pytest.raises(MissingParameterError):
            read_string_param({"to": "   "}, "to", required=True)

    def test_blank_optional_is_none(self):
        assert read_string_param({"before": " "}, "before") is None

    def test_allow_empty(self):
        assert read_string_param({"content": ""}, "content", required=True, allow_empty=True) == ""

    def test_label_used_in_error(self):
        with pytest.raises(MissingParameterError) as exc:
            read_string_param({}, "channelId", required=True, label="roomId")
        assert exc.value.field == "roomId"
        assert "roomId" in str(exc.value)

    def test_number_is_stringified(self):
        assert read_string_param({"limit": 5}, "limit") == "5"

    def test_bool_is_invalid(self):
        with pytest.raises(InvalidParameterError):
            read_string_param({"to": True}, "to")


class TestReadNumberParam:
    def test_int(self):
        assert read_number_param({"limit": 10}, "limit", integer=True) == 10

    def test_numeric_string(self):
        assert read_number_param({"limit": " 20 "}, "limit", integer=True) == 20

    def test_float(self):
        assert read_number_param({"x": "1.5"}, "x") == 1.5

    def test_missing_is_none(self):
        assert read_number_param({}, "limit") is None

    def test_blank_string_is_none(self):
        assert read_number_param({"limit": ""}, "limit") is None

    def test_not_a_number(self):
        with pytest.raises(InvalidParameterError) as exc:
            read_number_param({"limit": "ten"}, "limit")
        assert exc.value.field == "limit"

    def test_not_integral(self):
        with pytest.raises(InvalidParameterError):
            read_number_param({"limit": 2.5}, "limit", integer=True)

    def test_integral_float_accepted(self):
        assert read_number_param({"limit": 3.0}, "limit", integer=True) == 3

    def test_bool_rejected(self):
        with pytest.raises(InvalidParameterError):
            read_number_param({"limit": True}, "limit")

    def test_nan_rejected(self):
        with pytest.raises(InvalidParameterError):
            read_number_param({"limit": "nan"}, "limit")

    @pytest.mark.parametrize("raw", [0, "-3"])
    def test_below_minimum(self, raw):
        with pytest.raises(InvalidParameterError) as exc:
            read_number_param({"limit": raw}, "limit", integer=True, minimum=1)
        assert "at least 1" in str(exc.value)

    def test_at_minimum(self):
        assert read_number_param({"limit": "1"}, "limit", integer=True, minimum=1) == 1


class TestReadBoolParam:
    @pytest.mark.parametrize("raw", [True, "true", "1", "yes", "ON"])
    def test_truthy(self, raw):
        assert read_bool_param({"remove": raw}, "remove") is True

    @pytest.mark.parametrize("raw", [False, "false", "0", "no", ""])
    def test_falsy(self, raw):
        assert read_bool_param({"remove": raw}, "remove") is False

    def test_missing(self):
        assert read_bool_param({}, "remove") is None

    def test_garbage(self):
        with pytest.raises(InvalidParameterError):
            read_bool_param({"remove": "maybe"}, "remove")


class TestReadJsonListParam:
    def test_json_string(self):
        assert read_json_list_param({"roots": '["/a", "/b"]'}, "roots") == ["/a", "/b"]

    def test_list_value(self):
        assert read_json_list_param({"roots": ["/a"]}, "roots") == ["/a"]

    def test_unparsable(self):
        with pytest.raises(InvalidParameterError) as exc:
            read_json_list_param({"roots": "[not json"}, "roots")
        assert "JSON" in str(exc.value)

    def test_not_a_list(self):
        with pytest.raises(InvalidParameterError):
            read_json_list_param({"roots": '{"a": 1}'}, "roots")

    def test_missing(self):
        assert read_json_list_param({}, "roots") is None


class TestSplitListParam:
    def test_splits_and_trims(self):
        assert split_list_param(" 👍 , 🎉 ,, ") == ["👍", "🎉"]

    def test_single(self):
        assert split_list_param("👍") == ["👍"]

    def test_empty(self):
        assert split_list_param("") == []
        assert split_list_param(None) == []


class TestExtractParams:
    def test_alias_order(self):
        fields = (param("roomId", "channelId", "to", label="roomId", required=True),)
        args = extract_params({"channelId": "!c:x", "to": "!t:x"}, fields)
        assert args == {"roomId": "!c:x"}

    def test_blank_alias_falls_through(self):
        fields = (param("roomId", "channelId", "to", label="roomId", required=True),)
        args = extract_params({"roomId": "  ", "to": "!t:x"}, fields)
        assert args["roomId"] == "!t:x"

    def test_required_missing_uses_label(self):
        fields = (param("roomId", "channelId", "to", label="roomId", required=True),)
        with pytest.raises(MissingParameterError) as exc:
            extract_params({}, fields)
        assert exc.value.field == "roomId"

    def test_optional_fields_present_as_none(self):
        fields = (param("threadId"), param("limit", kind="integer"))
        assert extract_params({}, fields) == {"threadId": None, "limit": None}

    def test_kinds(self):
        fields = (
            param("limit", kind="integer"),
            param("remove", kind="bool"),
            param("roots", kind="json_list"),
        )
        args = extract_params({"limit": "4", "remove": "true", "roots": '["/r"]'}, fields)
        assert args == {"limit": 4, "remove": True, "roots": ["/r"]}
