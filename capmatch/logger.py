'''
Module de configuration pour le logger centralisé du moteur de correspondance.

Ce module utilise Loguru pour fournir un logger pré-configuré avec une sortie
console (avec couleurs) et, si LOG_TO_FILE est actif, des fichiers rotatifs.
'''

import os
import sys

from loguru import logger

from capmatch.config import settings

# ==============================================================================
# Configuration de Loguru
# ==============================================================================

# 1. Supprimer le handler par défaut pour éviter les doublons
logger.remove()

# 2. Définir les formats pour les logs
LOG_FORMAT_CONSOLE = (
    "<white>{time:YYYY-MM-DD HH:mm:ss.SSS}</white> | "
    "<level>{level: <8}</level> | "
    "<light-black>{name}:{function}:{line}</light-black> - "
    "<level><b>{message}</b></level>"
)
LOG_FORMAT_FILE = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
    "{level: <8} | "
    "{name}:{function}:{line} - "
    "{message}"
)

# 3. Handler pour la sortie console (stderr)
logger.add(
    sys.stderr,
    level=settings.LOG_LEVEL,
    format=LOG_FORMAT_CONSOLE,
    colorize=True,
    backtrace=True,
    diagnose=False
)


def _add_file_handler(filename: str, level: str, record_filter=None) -> None:
    """Ajoute un fichier journal avec rotation journalière, 30 jours, compression."""
    logger.add(
        os.path.join(settings.LOG_DIR, filename),
        level=level,
        format=LOG_FORMAT_FILE,
        rotation="00:00",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
        filter=record_filter,
        backtrace=level == "ERROR",
    )


# 4. Fichiers de log spécifiques (un par famille de niveaux)
if settings.LOG_TO_FILE:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    _add_file_handler("debug.log", "DEBUG", lambda record: record["level"].name == "DEBUG")
    _add_file_handler(
        "info.log", "INFO", lambda record: record["level"].name in ("INFO", "WARNING")
    )
    _add_file_handler("error.log", "ERROR")

# Exemple d'utilisation :
# from capmatch.logger import logger
# logger.debug("Descripteur {name} ignoré", name=descriptor.name)
