def error_code(response):
    body = response.json()
    assert body['success'] is False
    return body['error']['code']


def data(response):
    body = response.json()
    assert body['success'] is True, body
    return body['data']
