import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import patch
from skyweave.services.request_store import RequestStore


class TestHealthRoutes:
    def test_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.json['status'] == 'ok'

    def test_ready(self, client):
        resp = client.get('/ready')
        assert resp.status_code == 200
        assert resp.json['db'] is True
        assert resp.json['providers'] == {'weather': True, 'transform': True}


class TestDateRange:
    def test_date_range(self, client):
        resp = client.get('/api/requests/date-range')
        assert resp.status_code == 200
        earliest = datetime.strptime(resp.json['min_date'], '%Y-%m-%d').date()
        latest = datetime.strptime(resp.json['max_date'], '%Y-%m-%d').date()
        assert (latest - earliest).days == 365 + 16


class TestCreateRequest:
    def _post(self, client, photo_upload, **overrides):
        form = {'location': 'Paris', 'date': '2026-10-01', 'time_of_day': 'sunset', 'photo': photo_upload()}
        form.update(overrides)
        form = {k: v for k, v in form.items() if v is not None}
        return client.post('/api/requests', data=form, content_type='multipart/form-data')

    def test_create_runs_weather_stage(self, client, db_session, photo_upload, fake_geocoder, fake_weather_provider):
        with patch('skyweave.pipeline.orchestrator.Geocoder', return_value=fake_geocoder), \
                patch('skyweave.pipeline.orchestrator.WeatherProvider', return_value=fake_weather_provider):
            resp = self._post(client, photo_upload)

        assert resp.status_code == 202
        request_id = resp.json['id']
        assert len(request_id) == 32
        assert resp.json['user_id']

        detail = client.get(f'/api/requests/{request_id}')
        assert detail.status_code == 200
        body = detail.json
        assert body['status'] == 'weather_fetched'
        assert body['location']['name'] == 'Paris'
        assert body['weather']['temperature'] == 25.0
        assert body['time_of_day'] == 'sunset'
        assert 'Paris, FR' in body['prompt']
        assert body['has_result'] is False
        assert 'user_id' not in body

    def test_create_keeps_supplied_user_id(self, client, db_session, photo_upload,
                                           fake_geocoder, fake_weather_provider):
        with patch('skyweave.pipeline.orchestrator.Geocoder', return_value=fake_geocoder), \
                patch('skyweave.pipeline.orchestrator.WeatherProvider', return_value=fake_weather_provider):
            resp = self._post(client, photo_upload, user_id='user-42')

        assert resp.json['user_id'] == 'user-42'
        assert RequestStore().get(resp.json['id']).user_id == 'user-42'

    def test_create_geocode_failure_is_visible(self, client, db_session, photo_upload,
                                               fake_geocoder, fake_weather_provider):
        from skyweave.integrations.errors import NotFoundError
        fake_geocoder.lookup.side_effect = NotFoundError('location not found')
        with patch('skyweave.pipeline.orchestrator.Geocoder', return_value=fake_geocoder), \
                patch('skyweave.pipeline.orchestrator.WeatherProvider', return_value=fake_weather_provider):
            resp = self._post(client, photo_upload, location='Atlantis')

        body = client.get(f"/api/requests/{resp.json['id']}").json
        assert body['status'] == 'error'
        assert body['error_message'] == 'Failed to find location: location not found'

    @pytest.mark.parametrize('field', ['location', 'date', 'photo'])
    def test_missing_field(self, client, photo_upload, field):
        resp = self._post(client, photo_upload, **{field: None})
        assert resp.status_code == 400
        assert field in resp.json['error']

    def test_invalid_date(self, client, photo_upload):
        resp = self._post(client, photo_upload, date='01/10/2026')
        assert resp.status_code == 400
        assert 'YYYY-MM-DD' in resp.json['error']


class TestRequestLifecycle:
    def test_get_unknown_is_404(self, client):
        resp = client.get('/api/requests/does-not-exist')
        assert resp.status_code == 404

    def test_confirm_twice_submits_once(self, client, make_request, fake_transform_client):
        make_request(request_id='f' * 32, status='weather_fetched', prompt='p')

        with patch('skyweave.pipeline.orchestrator.ImageTransformClient', return_value=fake_transform_client):
            first = client.post(f"/api/requests/{'f' * 32}/confirm")
            second = client.post(f"/api/requests/{'f' * 32}/confirm")

        assert first.status_code == 202
        assert first.json['started'] is True
        assert second.status_code == 200
        assert second.json['started'] is False
        assert fake_transform_client.submit.call_count == 1
        assert client.get(f"/api/requests/{'f' * 32}").json['status'] == 'completed'

    def test_confirm_unknown_is_404(self, client):
        assert client.post('/api/requests/nope/confirm').status_code == 404

    def test_cancel(self, client, make_request):
        make_request(request_id='g' * 32, status='weather_fetched')

        resp = client.post(f"/api/requests/{'g' * 32}/cancel")
        assert resp.status_code == 200
        assert resp.json['status'] == 'cancelled'

        again = client.post(f"/api/requests/{'g' * 32}/cancel")
        assert again.status_code == 409

    def test_cancel_while_processing_is_conflict(self, client, make_request):
        make_request(request_id='h' * 32, status='processing', job_id='job-1')
        resp = client.post(f"/api/requests/{'h' * 32}/cancel")
        assert resp.status_code == 409
        assert 'processing' in resp.json['error']

    def test_image_not_ready(self, client, make_request):
        make_request(request_id='i' * 32, status='processing')
        assert client.get(f"/api/requests/{'i' * 32}/image").status_code == 404

    def test_image_served_when_completed(self, client, make_request, tmp_path):
        result = tmp_path / 'results' / ('j' * 32 + '.jpg')
        result.parent.mkdir(parents=True, exist_ok=True)
        result.write_bytes(b'result-bytes')
        make_request(request_id='j' * 32, status='completed', result_image_path=str(result))

        resp = client.get(f"/api/requests/{'j' * 32}/image")
        assert resp.status_code == 200
        assert resp.mimetype == 'image/jpeg'
        assert resp.data == b'result-bytes'
        resp.close()

    def test_image_missing_file_is_404(self, client, make_request, tmp_path):
        make_request(request_id='k' * 32, status='completed', result_image_path=str(tmp_path / 'gone.jpg'))
        assert client.get(f"/api/requests/{'k' * 32}/image").status_code == 404


class TestAdminRoutes:
    def test_requires_key(self, client):
        assert client.get('/api/admin/tasks').status_code == 401

    def test_wrong_key(self, client):
        resp = client.get('/api/admin/tasks', headers={'X-Admin-Key': 'nope'})
        assert resp.status_code == 401

    def test_bearer_token_accepted(self, client, app):
        resp = client.get('/api/admin/tasks', headers={'Authorization': f"Bearer {app.config['ADMIN_API_KEY']}"})
        assert resp.status_code == 200

    def test_disabled_without_configured_key(self, client, app):
        original = app.config['ADMIN_API_KEY']
        app.config['ADMIN_API_KEY'] = None
        try:
            resp = client.get('/api/admin/tasks', headers={'X-Admin-Key': 'anything'})
        finally:
            app.config['ADMIN_API_KEY'] = original
        assert resp.status_code == 503

    def test_tasks(self, client, admin_headers):
        resp = client.get('/api/admin/tasks', headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json == {'in_flight': [], 'count': 0}

    def test_stale_requests(self, client, admin_headers, make_request):
        old = datetime.now(timezone.utc) - timedelta(hours=2)
        make_request(request_id='s' * 32, status='processing', job_id='job-7', updated_at=old)
        make_request(request_id='t' * 32, status='processing')
        make_request(request_id='u' * 32, status='error', updated_at=old)

        resp = client.get('/api/admin/requests/stale?minutes=30', headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json['minutes'] == 30
        ids = [r['id'] for r in resp.json['requests']]
        assert ids == ['s' * 32]
        assert resp.json['requests'][0]['job_id'] == 'job-7'
