import pytest

from generators.generator_utils import MAX_DEPTH_LIMIT
from generators.optional_field_generator import OptionalFieldGenerator, extract_optional_fields
from generators.template_generator import generate_template
from optional_scanner import scan_explicit_optional_fields
from schema_resolver import resolve


def optional_fields_for(source, type_name, imports=None, **kwargs):
    schema = resolve(source, imports)
    explicit = scan_explicit_optional_fields(source)
    return extract_optional_fields(schema, schema.lookup_message(type_name), explicit, **kwargs)


def template_has_path(template, path):
    node = template
    for part in path.split('.'):
        if not isinstance(node, dict) or part not in node:
            return False
        node = node[part]
    return True


def test_scenario_optional_fields(read_proto):
    assert optional_fields_for(read_proto('scenario.proto'), 'demo.M') == ['age']


def test_paths_are_relative_to_the_occurrence():
    source = '''
    message Inner { optional string x = 1; string y = 2; }
    message Outer { Inner a = 1; Inner b = 2; }
    message Request { Outer outer = 1; }
    '''
    assert optional_fields_for(source, 'Outer') == ['a.x', 'b.x']
    assert optional_fields_for(source, 'Request') == ['outer.a.x', 'outer.b.x']


def test_optional_message_field_and_its_children(read_proto):
    optional = optional_fields_for(
        read_proto('ride.proto'), 'ride.v1.BookRideRequest',
        {'common/location.proto': read_proto('common/location.proto')},
    )
    # Location.label lives in an imported file, which is not scanned
    assert optional == ['dropoff', 'payment', 'payment.coupon']


def test_repeated_and_map_fields_are_not_descended():
    source = '''
    message Item { optional string note = 1; }
    message Basket {
      repeated Item items = 1;
      map<string, Item> by_name = 2;
      optional Item featured = 3;
    }
    '''
    assert optional_fields_for(source, 'Basket') == ['featured', 'featured.note']


def test_unresolved_fields_never_raise(read_proto):
    assert optional_fields_for(read_proto('broken_refs.proto'), 'Broken') == []


def test_empty_when_nothing_is_optional():
    schema = resolve('message Plain { string a = 1; }')
    generator = OptionalFieldGenerator(schema, set())
    assert generator.generate(schema.lookup_message('Plain')) == []


def test_recursive_optional_fields_stop_with_the_template(read_proto):
    source = read_proto('recursive.proto')
    assert optional_fields_for(source, 'Wrapper', max_depth=3) == ['root']
    chain = 'message Link { optional Link next = 1; optional int32 value = 2; }'
    assert optional_fields_for(chain, 'Link', max_depth=2) == [
        'next', 'next.next', 'next.next.next', 'next.next.value', 'next.value', 'value',
    ]


@pytest.mark.parametrize("proto_file,type_name,max_depth", [
    ('scenario.proto', 'demo.M', 32),
    ('ride.proto', 'ride.v1.BookRideRequest', 32),
    ('recursive.proto', 'Wrapper', 4),
    ('options.proto', 'opts.Item', 3),
    ('collision.proto', 'shop.GetUserRequest', 32),
])
def test_every_optional_path_is_a_template_key(read_proto, proto_file, type_name, max_depth):
    source = read_proto(proto_file)
    schema = resolve(source, {'common/location.proto': read_proto('common/location.proto')})
    message = schema.lookup_message(type_name)
    template = generate_template(schema, message, max_depth=max_depth)
    optional = extract_optional_fields(schema, message, scan_explicit_optional_fields(source), max_depth=max_depth)
    assert optional
    for path in optional:
        assert template_has_path(template, path), path


def test_options_item_optional_fields(read_proto):
    optional = optional_fields_for(read_proto('options.proto'), 'opts.Item', max_depth=1)
    assert optional == ['count', 'parent', 'parent.count', 'parent.parent', 'parent.mask', 'mask']


def test_large_max_depth_is_clamped():
    optional = optional_fields_for('message L { optional L next = 1; }', 'L', max_depth=1000)
    assert len(optional) == MAX_DEPTH_LIMIT + 1
    assert optional[-1] == '.'.join(['next'] * (MAX_DEPTH_LIMIT + 1))
