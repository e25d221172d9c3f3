# -*- coding: utf-8 -*-
"""
Reprocessa a tabela de licenças emitidas a partir das UFs liberadas dos pedidos
e marca como expiradas as licenças vencidas.

Pensado para rodar por agendador (cron) apontando para o mesmo DATABASE_URL
da API. Sai com código 1 quando alguma UF falhou.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.core.config import settings  # noqa: E402
from app.core.logging import configure_logging  # noqa: E402
from app.db.session import SessionLocal  # noqa: E402
from app.services.licences import ledger  # noqa: E402

logger = logging.getLogger("reconcile_ledger")


def main() -> int:
    parser = argparse.ArgumentParser(description="Reconcilia a tabela de licenças emitidas")
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Data de referência (AAAA-MM-DD) para expirar licenças; padrão: hoje",
    )
    parser.add_argument(
        "--expire-only",
        action="store_true",
        help="Só marca as licenças vencidas, sem reprocessar as liberadas",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Nível de log")
    args = parser.parse_args()

    configure_logging(args.log_level)

    db = SessionLocal()
    try:
        if args.expire_only:
            stats = {"expired": ledger.expire_overdue(db, args.today)}
            db.commit()
        else:
            stats = ledger.reconcile_approved(db, args.today)
    finally:
        db.close()

    print(json.dumps(stats, ensure_ascii=False))
    if stats.get("failed"):
        logger.error("reconcile_finished_with_failures failed=%s", stats["failed"])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
