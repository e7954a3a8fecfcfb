import os

os.environ.setdefault("USE_MOCK_DB", "true")

from fastapi.testclient import TestClient

from civic_triage.main import app
from civic_triage.services.trust_store import get_trust_store

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code, resp.json())

store = get_trust_store()
if hasattr(store, 'add_citizen'):
    store.add_citizen('c-demo', is_verified=True, trust_score=-3, full_name='Demo Citizen')

    print('\nSUBMIT (LOW trust):')
    resp = client.post('/reports', json={
        'title': 'Broken streetlight',
        'description': 'Out for a week near the plaza.',
        'category': 'ENGINEERING',
        'citizen_id': 'c-demo',
    })
    print(resp.status_code, resp.json())

    print('\nSUBMIT AGAIN (quota):')
    resp = client.post('/reports', json={
        'title': 'Another streetlight',
        'description': 'Same street, second pole.',
        'category': 'ENGINEERING',
        'citizen_id': 'c-demo',
    })
    print(resp.status_code, resp.json())

    print('\nTRUST:')
    print(client.get('/citizens/c-demo/trust').json())
