import json

import pytest

from generators.generator_utils import MAX_DEPTH_LIMIT
from proto_templates import parse_method_templates, parse_optional_fields, parse_proto_payload
from schema_resolver import SchemaError


def test_parse_method_templates(read_proto):
    templates = parse_method_templates(read_proto('scenario.proto'))
    assert templates == {"Describe": {"name": "", "age": 0, "tags": [], "favorite": "RED"}}


def test_parse_optional_fields(read_proto):
    optional = parse_optional_fields(read_proto('ride.proto'), {'common/location.proto': read_proto('common/location.proto')})
    assert optional == {
        "BookRide": ["dropoff", "payment", "payment.coupon"],
        "TrackRide": [],
    }


def test_payload_document(read_proto):
    payload = parse_proto_payload(read_proto('collision.proto'), main_name='collision.proto')
    assert payload["success"] is True
    assert set(payload["services"]) == {"OrderService", "UserService"}
    assert payload["methodTemplates"] == {"Get": {"user_id": "", "include_orders": False}}
    assert payload["optionalFields"] == {"Get": ["include_orders"]}
    user_get = payload["services"]["UserService"]["methods"]["Get"]
    assert user_get["requestType"] == "GetUserRequest"
    # The whole document is plain JSON
    assert json.loads(json.dumps(payload)) == payload


def test_payload_with_parser_feature_coverage(read_proto):
    payload = parse_proto_payload(read_proto('options.proto'), max_depth=1)
    sync = payload["services"]["ItemService"]["methods"]["Sync"]
    assert sync["requestStream"] and sync["responseStream"]
    template = payload["methodTemplates"]["Lookup"]
    assert template["id"] == ""
    assert template["kinds"] == []
    assert template["children"] == {}
    assert template["text"] == "" and template["blob"] == ""
    assert template["parent"]["parent"] == ""
    assert template["mask"] == 0


def test_explicit_optional_paths_are_template_keys(read_proto):
    source = read_proto('ride.proto')
    imports = {'common/location.proto': read_proto('common/location.proto')}
    templates = parse_method_templates(source, imports)
    for method, paths in parse_optional_fields(source, imports).items():
        for path in paths:
            node = templates[method]
            for part in path.split('.'):
                assert part in node, f"{method}: {path}"
                node = node[part]


def test_results_do_not_leak_between_calls(read_proto):
    first = parse_method_templates(read_proto('scenario.proto'))
    second = parse_method_templates(read_proto('collision.proto'))
    assert set(first) == {"Describe"}
    assert set(second) == {"Get"}


def test_invalid_main_source_raises():
    with pytest.raises(SchemaError):
        parse_proto_payload('message Broken {')
    with pytest.raises(SchemaError):
        parse_method_templates('service { rpc }')


def test_self_reference_with_large_max_depth():
    source = 'message L { L next = 1; } service S { rpc Go (L) returns (L); }'
    templates = parse_method_templates(source, max_depth=600)
    node = templates["Go"]
    levels = 0
    while node["next"] != "":
        node = node["next"]
        levels += 1
    assert levels == MAX_DEPTH_LIMIT
