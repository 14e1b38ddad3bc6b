import json

import pytest
from fastapi.testclient import TestClient

from main import app

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def pdf_bytes(sample_pdf):
    with open(sample_pdf, 'rb') as f:
        return f.read()


def upload(content, filename="sample.pdf"):
    return {'file': (filename, content, 'application/pdf')}


def ids(page):
    return [element['id'] for element in page]


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "PDF Element Overlay API"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert "pikepdf" in health["dependencies"]


def test_extract_elements(client, pdf_bytes):
    response = client.post("/extract-pdf-elements", files=upload(pdf_bytes), params={'scale': 2})

    assert response.status_code == 200
    [page] = response.json()
    assert ids(page) == ["text-1-0-0", "text-1-1-0", "annotation-1-0", "annotation-1-1", "image-1-0", "form-1-1"]
    heading = page[0]
    assert heading["scale"] == 2
    assert heading["y"] == pytest.approx(184)
    assert heading["fontSize"] == pytest.approx(40)


def test_extract_with_kind_toggles(client, pdf_bytes):
    config = json.dumps({'extract_images': False, 'extract_annotations': False})

    response = client.post("/extract-pdf-elements", files=upload(pdf_bytes), data={'config': config})

    assert response.status_code == 200
    assert {element['type'] for element in response.json()[0]} == {"text", "form-field"}


def test_extract_page_range(client, three_page_pdf):
    with open(three_page_pdf, 'rb') as f:
        content = f.read()

    response = client.post("/extract-pdf-elements", files=upload(content), params={'start_page': 2, 'end_page': 3})

    assert response.status_code == 200
    assert [page[0]['pageNumber'] for page in response.json()] == [2, 3]


def test_extract_start_page_past_the_end(client, three_page_pdf):
    with open(three_page_pdf, 'rb') as f:
        content = f.read()

    response = client.post("/extract-pdf-elements", files=upload(content), params={'start_page': 5})

    assert response.status_code == 200
    assert response.json() == []


def test_extract_rejects_bad_config(client, pdf_bytes):
    response = client.post("/extract-pdf-elements", files=upload(pdf_bytes), data={'config': "{not json"})

    assert response.status_code == 400


@pytest.mark.parametrize("content, filename", [
    (b"%PDF-1.7 but named wrong", "notes.txt"),
    (b"plain text pretending", "notes.pdf"),
])
def test_non_pdf_upload_is_rejected(client, content, filename):
    response = client.post("/extract-pdf-elements", files=upload(content, filename))

    assert response.status_code == 400


def test_rescale_elements(client, pdf_bytes):
    [page] = client.post("/extract-pdf-elements", files=upload(pdf_bytes)).json()

    response = client.post("/rescale-elements", json={'elements': page, 'new_scale': 2, 'old_scale': 1})

    assert response.status_code == 200
    rescaled = response.json()
    assert ids(rescaled) == ids(page)
    assert rescaled[0]['y'] == pytest.approx(page[0]['y'] * 2)
    assert all(element['scale'] == 2 for element in rescaled)


def test_rescale_rejects_non_positive_scale(client):
    response = client.post("/rescale-elements", json={'elements': [], 'new_scale': 0, 'old_scale': 1})

    assert response.status_code == 422


def test_render_page(client, pdf_bytes):
    response = client.post("/render-pdf-page", files=upload(pdf_bytes), params={'page_number': 1, 'scale': 0.5})

    assert response.status_code == 200
    assert response.headers['content-type'] == "image/png"
    assert response.content.startswith(PNG_SIGNATURE)
    assert response.headers['etag'].endswith('-p1-s0.5"')


def test_render_missing_page_is_404(client, pdf_bytes):
    response = client.post("/render-pdf-page", files=upload(pdf_bytes), params={'page_number': 5})

    assert response.status_code == 404


def test_session_lifecycle(client, pdf_bytes):
    created = client.post("/sessions", files=upload(pdf_bytes), params={'scale': 1})
    assert created.status_code == 200
    state = created.json()
    session_id = state['sessionId']
    assert state['pageCount'] == 1
    assert state['generation'] == 1
    assert len(state['elements'][0]) == 6

    assert client.get(f"/sessions/{session_id}").json()['generation'] == 1

    forms = client.get(f"/sessions/{session_id}/elements", params={'element_type': 'form-field'}).json()
    assert ids(forms) == ["form-1-1"]

    changed = client.put(f"/sessions/{session_id}/scale", json={'scale': 2, 'strategy': 'rescale'})
    assert changed.status_code == 200
    assert changed.json()['scale'] == 2
    assert changed.json()['generation'] == 2
    assert changed.json()['elements'][0][0]['y'] == pytest.approx(184)

    image = client.get(f"/sessions/{session_id}/pages/1/image")
    assert image.status_code == 200
    assert image.content.startswith(PNG_SIGNATURE)
    assert client.get(f"/sessions/{session_id}/pages/3/image").status_code == 404

    assert client.delete(f"/sessions/{session_id}").status_code == 200
    assert client.get(f"/sessions/{session_id}").status_code == 404
    assert client.delete(f"/sessions/{session_id}").status_code == 404


def test_unknown_session_is_404(client):
    assert client.get("/sessions/does-not-exist/elements").status_code == 404
    assert client.put("/sessions/does-not-exist/scale", json={'scale': 2}).status_code == 404
