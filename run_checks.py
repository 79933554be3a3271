from fastapi.testclient import TestClient
from trinetra.main import app

with TestClient(app) as client:
    print('ROOT:')
    print(client.get('/').json())

    print('\nHEALTH:')
    print(client.get('/health').json())

    print('\nDB HEALTH:')
    try:
        resp = client.get('/health/db')
        print(resp.status_code)
        try:
            print(resp.json())
        except Exception:
            print(resp.text)
    except Exception as e:
        print('DB call raised exception:', e)

    print('\nACTIVE ALERTS:')
    resp = client.get('/alerts/active')
    print(resp.status_code)
    print(resp.json() if resp.status_code == 200 else resp.text)

    print('\nPOLICE ID CHECK (POL001):')
    print(client.post('/auth/police/verify-id', json={'police_id': 'POL001'}).json())
