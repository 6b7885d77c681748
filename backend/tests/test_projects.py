from tests.test_utils_seed import editor_headers, ensure_user, jwt_headers
from apihub.constants.permissions import ROLE_VIEWER, expand_role


def test_project_crud_flow(client, app_context):
    headers = editor_headers('proj_crud@example.com')
    resp = client.post('/api/projects', json={'name': 'Billing API', 'description': 'Invoices'}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['slug'] == 'billing-api'
    assert body['docs_url'] == '/docs/billing-api'
    pid = body['id']

    got = client.get(f'/api/projects/{pid}', headers=headers)
    assert got.status_code == 200
    assert got.get_json()['versions'] == []

    upd = client.put(f'/api/projects/{pid}', json={'description': 'Invoices and payments'}, headers=headers)
    assert upd.status_code == 200
    assert upd.get_json()['description'] == 'Invoices and payments'
    assert upd.get_json()['name'] == 'Billing API'

    listed = client.get('/api/projects?name=billing', headers=headers)
    assert listed.status_code == 200
    assert [p['id'] for p in listed.get_json()['data']] == [pid]

    deleted = client.delete(f'/api/projects/{pid}', headers=headers)
    assert deleted.status_code == 204
    assert client.get(f'/api/projects/{pid}', headers=headers).status_code == 404


def test_project_validation_and_uniqueness(client, app_context):
    headers = editor_headers('proj_val@example.com')
    missing = client.post('/api/projects', json={'description': 'no name'}, headers=headers)
    assert missing.status_code == 400
    assert missing.get_json()['error']['detail'] == 'name required'

    assert client.post('/api/projects', json={'name': 'Dup Project'}, headers=headers).status_code == 201
    dup = client.post('/api/projects', json={'name': 'Other', 'slug': 'dup-project'}, headers=headers)
    assert dup.status_code == 400
    assert 'exists' in dup.get_json()['error']['detail']

    bad_slug = client.post('/api/projects', json={'name': 'Weird', 'slug': '***'}, headers=headers)
    assert bad_slug.status_code == 400


def test_project_versions(client, app_context):
    headers = editor_headers('proj_ver@example.com')
    pid = client.post('/api/projects', json={'name': 'Versioned'}, headers=headers).get_json()['id']
    v1 = client.post(f'/api/projects/{pid}/versions', json={'name': '1.0'}, headers=headers)
    assert v1.status_code == 201
    assert client.post(f'/api/projects/{pid}/versions', json={'name': '2.0'}, headers=headers).status_code == 201
    dup = client.post(f'/api/projects/{pid}/versions', json={'name': '1.0'}, headers=headers)
    assert dup.status_code == 400

    listed = client.get(f'/api/projects/{pid}/versions', headers=headers).get_json()['data']
    assert [v['name'] for v in listed] == ['1.0', '2.0']
    assert client.get('/api/projects/999999/versions', headers=headers).status_code == 404

    # deleting the project removes its versions
    assert client.delete(f'/api/projects/{pid}', headers=headers).status_code == 204
    assert client.get(f"/api/versions/{v1.get_json()['id']}/associations", headers=headers).status_code == 404


def test_viewer_cannot_manage_projects(client, app_context):
    viewer = ensure_user('proj_viewer@example.com', role=ROLE_VIEWER)
    headers = jwt_headers(viewer.id, expand_role(ROLE_VIEWER), ROLE_VIEWER)
    assert client.get('/api/projects', headers=headers).status_code == 200
    resp = client.post('/api/projects', json={'name': 'Nope'}, headers=headers)
    assert resp.status_code == 403
    assert resp.get_json()['error']['status'] == 403


def test_projects_require_token(client):
    assert client.get('/api/projects').status_code == 401
