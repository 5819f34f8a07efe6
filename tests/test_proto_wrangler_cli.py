import json
import os
import shutil

import pytest

from generators.generator_utils import MAX_DEPTH_LIMIT
from proto_wrangler import ProtoTemplateConverter, main, parse_arguments


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ('PW_INPUT_FILE', 'PW_OUTPUT_FILE', 'PW_MODE', 'PW_MAX_DEPTH', 'PW_VERBOSE'):
        monkeypatch.delenv(name, raising=False)


def write_file(path, text):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)


def test_payload_to_stdout(proto_dir, capsys):
    assert main(['--input', os.path.join(proto_dir, 'scenario.proto')]) == 0
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["success"] is True
    assert payload["methodTemplates"] == {"Describe": {"name": "", "age": 0, "tags": [], "favorite": "RED"}}
    assert payload["optionalFields"] == {"Describe": ["age"]}
    assert captured.err == ''


def test_import_dir_keys_by_relative_path(proto_dir, temp_dir, capsys):
    output = os.path.join(temp_dir, 'ride.json')
    code = main([
        '-i', os.path.join(proto_dir, 'ride.proto'),
        '--import-dir', proto_dir,
        '--mode', 'templates',
        '-o', output,
    ])
    assert code == 0
    assert capsys.readouterr().out == ''
    with open(output, 'r', encoding='utf-8') as f:
        templates = json.load(f)
    assert templates["BookRide"]["pickup"] == {"latitude": 0.0, "longitude": 0.0, "label": ""}


def test_single_import_file(proto_dir, temp_dir, capsys):
    main_file = os.path.join(temp_dir, 'ride.proto')
    shutil.copy(os.path.join(proto_dir, 'ride.proto'), main_file)
    location = os.path.join(temp_dir, 'vendor', 'common', 'location.proto')
    os.makedirs(os.path.dirname(location))
    shutil.copy(os.path.join(proto_dir, 'common', 'location.proto'), location)
    assert main(['-i', main_file, '-I', location, '--mode', 'optional']) == 0
    optional = json.loads(capsys.readouterr().out)
    assert optional == {"BookRide": ["dropoff", "payment", "payment.coupon"], "TrackRide": []}


def test_max_depth_flag(proto_dir, capsys):
    assert main(['-i', os.path.join(proto_dir, 'recursive.proto'), '--mode', 'templates', '--max-depth', '1']) == 0
    templates = json.loads(capsys.readouterr().out)
    assert templates["Insert"]["left"] == {"label": "", "left": "", "right": "", "children": []}


def test_environment_overrides(proto_dir, temp_dir, monkeypatch, capsys):
    output = os.path.join(temp_dir, 'out.json')
    monkeypatch.setenv('PW_INPUT_FILE', os.path.join(proto_dir, 'collision.proto'))
    monkeypatch.setenv('PW_OUTPUT_FILE', output)
    monkeypatch.setenv('PW_MODE', 'optional')
    monkeypatch.setenv('PW_VERBOSE', 'true')
    assert main(['--mode', 'templates']) == 0
    assert '[DEBUG]' in capsys.readouterr().err
    with open(output, 'r', encoding='utf-8') as f:
        assert json.load(f) == {"Get": ["include_orders"]}


def test_invalid_environment_values(monkeypatch):
    monkeypatch.setenv('PW_MODE', 'everything')
    with pytest.raises(SystemExit):
        parse_arguments(['-i', 'x.proto'])
    monkeypatch.setenv('PW_MODE', 'payload')
    monkeypatch.setenv('PW_MAX_DEPTH', 'deep')
    with pytest.raises(SystemExit):
        parse_arguments(['-i', 'x.proto'])


def test_missing_input_argument():
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments([])
    assert excinfo.value.code == 2
    with pytest.raises(SystemExit):
        parse_arguments(['-i', 'x.proto', '--max-depth', '-1'])


def test_unreadable_input(temp_dir, capsys):
    assert main(['-i', os.path.join(temp_dir, 'missing.proto')]) == 1
    assert 'cannot read input file' in capsys.readouterr().err


def test_syntax_error_reports_failure(temp_dir, capsys):
    broken = os.path.join(temp_dir, 'broken.proto')
    write_file(broken, 'syntax = "proto3";\nmessage Broken {\n  string = 1;\n}\n')
    assert main(['-i', broken]) == 1
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["success"] is False
    assert 'broken.proto' in payload["error"]
    assert captured.err.startswith('Error:')


def test_dump_schema(proto_dir, capsys):
    assert main(['-i', os.path.join(proto_dir, 'scenario.proto'), '--dump-schema']) == 0
    err = capsys.readouterr().err
    assert 'Message: demo.M' in err
    assert 'Method: Describe(M) returns (M)' in err
    assert 'Enum: demo.M.Color' in err


def test_converter_collects_import_candidates(proto_dir):
    converter = ProtoTemplateConverter(os.path.join(proto_dir, 'ride.proto'), import_dirs=[proto_dir])
    assert converter.load_inputs()
    assert 'common/location.proto' in converter.imports
    assert 'ride.proto' in converter.imports
    document = converter.convert()
    assert converter.schema.lookup_message('.common.Location') is not None
    assert set(document) == {"services", "methodTemplates", "optionalFields", "success"}


def test_max_depth_above_limit_is_rejected(monkeypatch):
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(['-i', 'x.proto', '--max-depth', str(MAX_DEPTH_LIMIT + 1)])
    assert excinfo.value.code == 2
    assert parse_arguments(['-i', 'x.proto', '--max-depth', str(MAX_DEPTH_LIMIT)]).max_depth == MAX_DEPTH_LIMIT
    monkeypatch.setenv('PW_MAX_DEPTH', '600')
    with pytest.raises(SystemExit):
        parse_arguments(['-i', 'x.proto'])
