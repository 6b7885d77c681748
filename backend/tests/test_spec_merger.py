import copy
import logging

import pytest

from apihub.services.spec_merger import (
    Association,
    ComponentResolver,
    HTTP_METHODS,
    collect_refs,
    list_endpoints,
    merge_specs,
    parse_component_ref,
    resolve_closure,
)
from tests.test_utils_seed import PETSTORE


def _assoc(doc_id, path, method, doc):
    return Association(source_document_id=doc_id, endpoint_path=path, endpoint_method=method, document=doc)


def _all_refs(value):
    refs = set()
    collect_refs(value, refs)
    return refs


# ---------- Reference scanner ---------- #

def test_collect_refs_walks_nested_objects_and_arrays():
    value = {
        'a': {'$ref': '#/components/schemas/A'},
        'b': [{'c': {'$ref': '#/components/schemas/C'}}, 'x', 3, None],
        'd': {'$ref': '#/components/schemas/A'},
    }
    assert _all_refs(value) == {'#/components/schemas/A', '#/components/schemas/C'}


def test_collect_refs_ignores_scalars_and_non_string_refs():
    refs = {'#/keep'}
    for scalar in (None, 1, 'text', True, 2.5):
        collect_refs(scalar, refs)
    collect_refs({'$ref': {'$ref': '#/inner'}}, refs)
    assert refs == {'#/keep', '#/inner'}


def test_collect_refs_does_not_mutate_input():
    value = {'x': [{'$ref': '#/components/schemas/X'}]}
    before = copy.deepcopy(value)
    _all_refs(value)
    assert value == before


def test_parse_component_ref():
    assert parse_component_ref('#/components/schemas/Pet') == ('schemas', 'Pet')
    assert parse_component_ref('#/components/schemas/Pet/properties/id') == ('schemas', 'Pet')
    assert parse_component_ref('#/components/schemas/a~1b~0c') == ('schemas', 'a/b~c')
    assert parse_component_ref('#/components/schemas') is None
    assert parse_component_ref('#/definitions/Pet') is None
    assert parse_component_ref('other.yaml#/components/schemas/Pet') is None


# ---------- Merge scenarios ---------- #

def test_merge_includes_selected_operations_and_transitive_components():
    merged = merge_specs(
        [_assoc('A', '/pets', 'get', PETSTORE), _assoc('A', '/pets/{id}', 'delete', PETSTORE)],
        title='Pets - 1.0', version='1.0',
    )
    assert merged['openapi'] == '3.0.0'
    assert merged['info']['title'] == 'Pets - 1.0'
    assert merged['info']['version'] == '1.0'
    assert {p: sorted(ops) for p, ops in merged['paths'].items()} == {'/pets': ['get'], '/pets/{id}': ['delete']}
    assert set(merged['components']['schemas']) == {'Pet', 'Owner'}
    assert merged['tags'] == [{'name': 'pets', 'description': 'Pet operations'}]
    assert merged['servers'] == [{'url': 'https://pets.example.com'}]


def test_merge_resolves_refs_through_response_components():
    merged = merge_specs([_assoc('A', '/orders', 'get', PETSTORE)], title='t', version='v')
    assert set(merged['components']['responses']) == {'OrderList'}
    assert set(merged['components']['schemas']) == {'Order'}


def test_path_level_fields_are_not_copied():
    merged = merge_specs([_assoc('A', '/pets/{id}', 'delete', PETSTORE)], title='t', version='v')
    assert list(merged['paths']['/pets/{id}']) == ['delete']
    assert 'parameters' not in merged.get('components', {})


def test_missing_endpoint_is_skipped_silently():
    merged = merge_specs(
        [_assoc('A', '/pets', 'get', PETSTORE), _assoc('A', '/gone', 'get', PETSTORE), _assoc('A', '/pets', 'patch', PETSTORE)],
        title='t', version='v',
    )
    assert list(merged['paths']) == ['/pets']
    assert list(merged['paths']['/pets']) == ['get']


def test_method_matching_is_case_insensitive_and_verbs_only():
    doc = {'paths': {'/x': {'get': {'responses': {}}, 'x-extension': {'responses': {}}}}}
    merged = merge_specs([_assoc(1, '/x', 'GET', doc), _assoc(1, '/x', 'x-extension', doc)], title='t', version='v')
    assert merged['paths'] == {'/x': {'get': {'responses': {}}}}


@pytest.mark.parametrize('associations', [
    [],
    [Association(1, '/nothing', 'get', {'paths': {}})],
    [Association(1, '/pets', 'get', None)],
])
def test_empty_or_unresolved_selection_returns_placeholder(associations):
    merged = merge_specs(associations, title='Proj - 1', version='1')
    assert merged['paths'] == {}
    assert merged['openapi'] == '3.0.0'
    assert merged['info']['title'] == 'Proj - 1'
    assert merged['info']['description']


def test_operations_are_deep_copies_and_sources_untouched():
    source = copy.deepcopy(PETSTORE)
    merged = merge_specs([_assoc('A', '/pets', 'get', source)], title='t', version='v')
    assert source == PETSTORE
    merged['paths']['/pets']['get']['tags'].append('mutated')
    merged['components']['schemas']['Pet']['properties']['extra'] = {}
    assert source['paths']['/pets']['get']['tags'] == ['pets']
    assert 'extra' not in source['components']['schemas']['Pet']['properties']


def test_same_operation_selected_twice_appears_once():
    merged = merge_specs([_assoc('A', '/pets', 'get', PETSTORE)] * 2, title='t', version='v')
    assert list(merged['paths']) == ['/pets']


def test_unresolvable_and_external_refs_are_omitted():
    doc = {
        'paths': {'/a': {'get': {'responses': {'200': {'$ref': '#/components/responses/Missing'}},
                                 'parameters': [{'$ref': 'common.yaml#/Param'}]}}},
        'components': {'schemas': {'Unused': {}}},
    }
    merged = merge_specs([_assoc(1, '/a', 'get', doc)], title='t', version='v')
    assert merged['components'] == {}


def test_cyclic_references_terminate():
    doc = {
        'paths': {'/a': {'get': {'responses': {'200': {'$ref': '#/components/responses/R'}}}}},
        'components': {
            'responses': {'R': {'description': 'r', 'content': {'application/json': {'schema': {'$ref': '#/components/schemas/Node'}}}}},
            'schemas': {
                'Node': {'properties': {'next': {'$ref': '#/components/schemas/Node'}, 'leaf': {'$ref': '#/components/schemas/Leaf'}}},
                'Leaf': {'properties': {'back': {'$ref': '#/components/schemas/Node'}}},
            },
        },
    }
    merged = merge_specs([_assoc(1, '/a', 'get', doc)], title='t', version='v')
    assert set(merged['components']['schemas']) == {'Node', 'Leaf'}
    assert set(merged['components']['responses']) == {'R'}


def test_refs_resolve_across_documents():
    doc_a = {'paths': {'/a': {'get': {'responses': {'200': {'$ref': '#/components/responses/Shared'}}}}}}
    doc_b = {
        'paths': {},
        'components': {'responses': {'Shared': {'description': 'shared', 'content': {'application/json': {'schema': {'$ref': '#/components/schemas/S'}}}}},
                       'schemas': {'S': {'type': 'string'}}},
    }
    merged = merge_specs([_assoc('a', '/a', 'get', doc_a), _assoc('b', '/missing', 'get', doc_b)], title='t', version='v')
    assert merged['components']['responses']['Shared']['description'] == 'shared'
    assert merged['components']['schemas']['S'] == {'type': 'string'}


def test_component_name_collision_first_document_wins(caplog):
    doc_a = {
        'paths': {'/a': {'get': {'responses': {'default': {'$ref': '#/components/responses/E'}}}}},
        'components': {'responses': {'E': {'description': 'a', 'content': {'application/json': {'schema': {'$ref': '#/components/schemas/Error'}}}}},
                       'schemas': {'Error': {'title': 'from-a'}}},
    }
    doc_b = {
        'paths': {'/b': {'get': {'responses': {'default': {'description': 'b', 'content': {'application/json': {'schema': {'$ref': '#/components/schemas/Error'}}}}}}}},
        'components': {'schemas': {'Error': {'title': 'from-b'}}},
    }
    with caplog.at_level(logging.WARNING, logger='apihub.services.spec_merger'):
        ab = merge_specs([_assoc('a', '/a', 'get', doc_a), _assoc('b', '/b', 'get', doc_b)], title='t', version='v')
    ba = merge_specs([_assoc('b', '/b', 'get', doc_b), _assoc('a', '/a', 'get', doc_a)], title='t', version='v')
    assert ab['components']['schemas'] == {'Error': {'title': 'from-a'}}
    assert ba['components']['schemas'] == {'Error': {'title': 'from-b'}}
    # deterministic for a fixed association order
    assert merge_specs([_assoc('a', '/a', 'get', doc_a), _assoc('b', '/b', 'get', doc_b)], title='t', version='v') == ab
    assert any('Error' in r.getMessage() for r in caplog.records)


def test_tags_and_servers_deduplicated_and_filtered_to_used_tags():
    doc_a = {
        'servers': [{'url': 'https://api.example.com'}, {'url': 'https://api.example.com', 'description': 'dup'}],
        'tags': [{'name': 'shared', 'description': 'first'}, {'name': 'unused'}],
        'paths': {'/a': {'get': {'tags': ['shared'], 'responses': {}}}},
    }
    doc_b = {
        'servers': [{'url': 'https://api.example.com'}, {'url': 'https://b.example.com'}],
        'tags': [{'name': 'shared', 'description': 'second'}, {'name': 'b-only'}],
        'paths': {'/b': {'get': {'tags': ['b-only'], 'responses': {}}}},
    }
    merged = merge_specs([_assoc(1, '/a', 'get', doc_a), _assoc(2, '/b', 'get', doc_b)], title='t', version='v')
    assert merged['tags'] == [{'name': 'shared', 'description': 'first'}, {'name': 'b-only'}]
    assert [s['url'] for s in merged['servers']] == ['https://api.example.com', 'https://b.example.com']


def test_malformed_tag_names_and_server_urls_are_skipped():
    doc = {
        'servers': [{'url': ['not', 'a', 'string']}, {'description': 'no url'}, 'bare', {'url': 'https://ok.example.com'}],
        'tags': [{'name': {'nested': True}}, {'name': ['x']}, {'name': 'good'}],
        'paths': {'/a': {'get': {'tags': ['good'], 'responses': {}}}},
    }
    merged = merge_specs([_assoc(1, '/a', 'get', doc)], title='t', version='v')
    assert merged['tags'] == [{'name': 'good'}]
    assert merged['servers'] == [{'url': 'https://ok.example.com'}]


def test_first_document_wins_when_ids_repeat():
    other = {'paths': {'/pets': {'get': {'summary': 'other', 'responses': {}}}}}
    merged = merge_specs([_assoc('A', '/pets', 'get', PETSTORE), _assoc('A', '/pets', 'get', other)], title='t', version='v')
    assert 'summary' not in merged['paths']['/pets']['get']


def test_merge_is_idempotent():
    associations = [_assoc('A', '/pets', 'get', PETSTORE), _assoc('A', '/orders', 'get', PETSTORE)]
    assert merge_specs(associations, title='t', version='v') == merge_specs(associations, title='t', version='v')


def test_closure_completeness_property():
    merged = merge_specs(
        [_assoc('A', p, m, PETSTORE) for p, m in (('/pets', 'get'), ('/pets/{id}', 'delete'), ('/orders', 'get'))],
        title='t', version='v',
    )
    refs = _all_refs(merged['paths']) | _all_refs(merged['components'])
    for ref in refs:
        ctype, name = parse_component_ref(ref)
        assert name in merged['components'].get(ctype, {}), ref


def test_resolve_closure_visits_each_ref_once():
    resolver = ComponentResolver([PETSTORE])
    visited = resolve_closure(['#/components/schemas/Pet', '#/components/schemas/Pet'], resolver)
    assert visited == ['#/components/schemas/Pet', '#/components/schemas/Owner']


# ---------- Endpoint listing ---------- #

def test_list_endpoints_only_http_verbs():
    doc = {'paths': {'/x': {'GET': {}, 'post': {}, 'parameters': [], 'x-vendor': {}, 'summary': 's'}, '/y': None}}
    assert list_endpoints(doc) == [{'path': '/x', 'method': 'get'}, {'path': '/x', 'method': 'post'}]
    assert list_endpoints(None) == []
    assert list_endpoints({'paths': []}) == []
    assert set(HTTP_METHODS) == {'get', 'post', 'put', 'delete', 'patch', 'options', 'head', 'trace'}
