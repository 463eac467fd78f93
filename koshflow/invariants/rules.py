"""
KOSHFLOW Client - Invariants
Règles du client API authentifié. Elles ne sont pas configurables.
Total: 24 règles
"""

from enum import Enum
from typing import Final


class Severity(Enum):
    """Criticité d'un invariant."""

    BLOCKING = "blocking"
    WARNING = "warning"


class Invariant:
    """Définition d'un invariant du client."""

    def __init__(self, id: str, rule: str, severity: Severity = Severity.BLOCKING):
        self.id = id
        self.rule = rule
        self.severity = severity

    def __repr__(self) -> str:
        return f"Invariant({self.id})"


# ══════════════════════════════════════════════════════════════════════════════
# SESSION (SESS_001-006) - 6 règles
# ══════════════════════════════════════════════════════════════════════════════

SESS_001 = Invariant("SESS_001", "Une seule paire de tokens courante par instance client")
SESS_002 = Invariant("SESS_002", "Remplacement atomique de la paire, jamais partiel")
SESS_003 = Invariant("SESS_003", "Token None efface aussi la valeur persistée")
SESS_004 = Invariant("SESS_004", "Tokens persistés sous les clés 'token' et 'refreshToken'")
SESS_005 = Invariant("SESS_005", "Tokens opaques, aucune validation côté client", Severity.WARNING)
SESS_006 = Invariant("SESS_006", "Les deux tokens présents au démarrage = vérification du profil")

# ══════════════════════════════════════════════════════════════════════════════
# REFRESH (REFR_001-006) - 6 règles
# ══════════════════════════════════════════════════════════════════════════════

REFR_001 = Invariant("REFR_001", "Un seul appel refresh amont quel que soit le nombre de 401")
REFR_002 = Invariant("REFR_002", "Les appelants concurrents attendent le même refresh en cours")
REFR_003 = Invariant("REFR_003", "Retour à IDLE à la fin du refresh, succès ou échec")
REFR_004 = Invariant("REFR_004", "Requête rejouée au plus une fois après refresh")
REFR_005 = Invariant("REFR_005", "401 sur une requête déjà rejouée = erreur terminale")
REFR_006 = Invariant("REFR_006", "Échec refresh = effacement des tokens et session expirée")

# ══════════════════════════════════════════════════════════════════════════════
# NETWORK (NET_001-005) - 5 règles
# ══════════════════════════════════════════════════════════════════════════════

NET_001 = Invariant("NET_001", "Header Authorization Bearer injecté si un token est présent")
NET_002 = Invariant("NET_002", "Content-Type application/json sur chaque requête")
NET_003 = Invariant("NET_003", "Erreur réseau distincte des erreurs HTTP")
NET_004 = Invariant("NET_004", "Toute réponse non-2xx devient une erreur avec status, code, details")
NET_005 = Invariant("NET_005", "Message par défaut dérivé de la ligne de statut HTTP", Severity.WARNING)

# ══════════════════════════════════════════════════════════════════════════════
# RETRY (RETRY_001-004) - 4 règles
# ══════════════════════════════════════════════════════════════════════════════

RETRY_001 = Invariant("RETRY_001", "4xx hors 429 = terminal, jamais rejoué")
RETRY_002 = Invariant("RETRY_002", "429, 5xx et erreurs réseau sont rejouables")
RETRY_003 = Invariant("RETRY_003", "Backoff exponentiel plafonné par max_delay")
RETRY_004 = Invariant("RETRY_004", "Nombre de tentatives borné par configuration")

# ══════════════════════════════════════════════════════════════════════════════
# LOGGING (LOG_001-003) - 3 règles
# ══════════════════════════════════════════════════════════════════════════════

LOG_001 = Invariant("LOG_001", "Format JSON structuré obligatoire")
LOG_002 = Invariant("LOG_002", "Timestamp ISO 8601 UTC avec millisecondes", Severity.WARNING)
LOG_003 = Invariant("LOG_003", "Tokens et mots de passe JAMAIS en clair dans les logs")


# ══════════════════════════════════════════════════════════════════════════════
# REGISTRE
# ══════════════════════════════════════════════════════════════════════════════

ALL_INVARIANTS: Final[dict[str, Invariant]] = {
    # SESS (6)
    "SESS_001": SESS_001,
    "SESS_002": SESS_002,
    "SESS_003": SESS_003,
    "SESS_004": SESS_004,
    "SESS_005": SESS_005,
    "SESS_006": SESS_006,
    # REFR (6)
    "REFR_001": REFR_001,
    "REFR_002": REFR_002,
    "REFR_003": REFR_003,
    "REFR_004": REFR_004,
    "REFR_005": REFR_005,
    "REFR_006": REFR_006,
    # NET (5)
    "NET_001": NET_001,
    "NET_002": NET_002,
    "NET_003": NET_003,
    "NET_004": NET_004,
    "NET_005": NET_005,
    # RETRY (4)
    "RETRY_001": RETRY_001,
    "RETRY_002": RETRY_002,
    "RETRY_003": RETRY_003,
    "RETRY_004": RETRY_004,
    # LOG (3)
    "LOG_001": LOG_001,
    "LOG_002": LOG_002,
    "LOG_003": LOG_003,
}

# Comptage attendu par section
EXPECTED_COUNTS: Final[dict[str, int]] = {
    "SESS": 6,
    "REFR": 6,
    "NET": 5,
    "RETRY": 4,
    "LOG": 3,
}

TOTAL_INVARIANTS: Final[int] = len(ALL_INVARIANTS)
