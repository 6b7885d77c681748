def test_openapi_spec_available(client):
    resp = client.get('/openapi.json')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['openapi'].startswith('3.')
    assert body['info']['title'] == 'API Hub'
    for path in ['/api/auth/login', '/api/projects', '/api/specs/{spec_id}', '/api/versions/{version_id}/associations', '/docs/versions/{version_id}']:
        assert path in body['paths'], path


def test_docs_page(client):
    resp = client.get('/api-docs')
    assert resp.status_code == 200
    assert b'Redoc' in resp.data or b'redoc' in resp.data


def test_sort_parameter_components_and_usage(client):
    spec = client.get('/openapi.json').get_json()
    comps = spec['components']['parameters']
    for name in ['SortProjectsParam', 'SortSpecsParam', 'LimitParam', 'OffsetParam']:
        assert name in comps, f"Missing parameter component: {name}"
    path_map = {'/api/projects': 'SortProjectsParam', '/api/specs': 'SortSpecsParam'}
    for p, comp in path_map.items():
        params = spec['paths'][p]['get'].get('parameters', [])
        assert any(pr.get('$ref', '').endswith(comp) for pr in params), f"{p} missing ref to {comp}"


def test_list_caching_headers_documented(client):
    spec = client.get('/openapi.json').get_json()
    for p in ['/api/projects', '/api/specs']:
        hdrs = spec['paths'][p]['get']['responses']['200'].get('headers', {})
        for h in ['ETag', 'Last-Modified', 'X-Last-Modified-ISO']:
            assert h in hdrs, f"{p} missing header doc {h}"


def test_operation_ids_unique_and_refs_resolve(client):
    from apihub.services.spec_merger import collect_refs, parse_component_ref
    spec = client.get('/openapi.json').get_json()
    op_ids = [op['operationId'] for item in spec['paths'].values() for m, op in item.items() if m != 'parameters']
    assert len(op_ids) == len(set(op_ids))
    refs = set()
    collect_refs(spec, refs)
    for ref in refs:
        ctype, name = parse_component_ref(ref)
        assert name in spec['components'][ctype], ref


def test_openapi_is_deterministic(client):
    assert client.get('/openapi.json').get_json() == client.get('/openapi.json').get_json()
