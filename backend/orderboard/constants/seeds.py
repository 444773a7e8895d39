"""Demo accounts, one per role. Single source of truth for the seed script and the
optional seed-on-login behaviour (SEED_DEMO_USERS_ON_LOGIN)."""

DEMO_USERS = [
    {'name': 'Master Admin', 'email': 'master@demo.com', 'role': 'MASTER', 'password': 'master'},
    {'name': 'Op. João', 'email': 'operator@demo.com', 'role': 'OPERATOR', 'password': 'operator'},
    {'name': 'Cliente Ana', 'email': 'client@demo.com', 'role': 'CLIENT', 'password': 'client'},
]
