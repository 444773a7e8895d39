"""Order table constants: canonical headers, legacy header detection, status labels."""
from __future__ import annotations
import re

EMAIL_HEADER = 'Email'

# Column 0 is fixed and drives owner resolution
DEFAULT_HEADERS = (
    EMAIL_HEADER,
    'Número',
    'Data',
    'Consignatário',
    'Agente de Destino',
    'Remetente',
    'Transportadora',
    'Peças',
    'Peso',
    'Volume',
    'Número da Nota Fiscal',
    'Observações',
    'Número de Rastreamento',
)

# Placeholder labels from the first release ("DADO 2", "DADO 3", ...)
LEGACY_HEADER_PATTERN = re.compile(r'dado', re.IGNORECASE)

TABLE_CONFIG_ID = 'default'

STATUS_PENDING = 'PENDENTE'
STATUS_IN_REVIEW = 'EM_ANALISE'
STATUS_APPROVED = 'APROVADO'
STATUS_REJECTED = 'REJEITADO'
ALL_STATUSES = (
    STATUS_PENDING,
    STATUS_IN_REVIEW,
    STATUS_APPROVED,
    STATUS_REJECTED,
)

STATUS_LABELS = {
    STATUS_PENDING: 'Pendente',
    STATUS_IN_REVIEW: 'Em análise',
    STATUS_APPROVED: 'Aprovado',
    STATUS_REJECTED: 'Rejeitado',
}


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


# Change feed topics
TOPIC_ORDERS = 'orders'
TOPIC_TABLE_CONFIG = 'table-config'
