"""
BlueCarbon Registry - User Service
====================================
Utenti e connessione wallet simulata.
"""

from typing import Any, List, Optional

from blue_carbon.chain.simulator import WalletConnection
from blue_carbon.domain.models import User
from blue_carbon.logging_setup import get_logger
from blue_carbon.services.base import RegistryService, require_identifier


logger = get_logger("user_service")


class UserService(RegistryService):
    """Servizio utenti"""

    def register_user(self, data: Any) -> User:
        """
        Crea utente.

        Raises:
            ValidationError: username mancante o già in uso
        """
        user = self.store.users.create(data)
        logger.info(
            "User registered",
            extra_data={"user_id": user.id, "username": user.username, "role": user.role}
        )
        return user

    def get_user(self, user_id: str) -> User:
        return self.store.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        users = self.store.users.list(username=username)
        return users[0] if users else None

    def get_user_by_wallet(self, wallet_address: str) -> Optional[User]:
        users = self.store.users.list(wallet_address=wallet_address)
        return users[0] if users else None

    def list_users(self) -> List[User]:
        return self.store.users.list()

    def connect_wallet(self, wallet_address: str) -> WalletConnection:
        """
        Sessione wallet simulata.

        L'indirizzo è un identificativo opaco: nessuna validazione di formato.
        """
        wallet_address = require_identifier("wallet_address", wallet_address)
        connection = self.store.simulator.connect_wallet(wallet_address)
        logger.info(
            "Wallet connected",
            extra_data={"wallet_address": wallet_address, "network": connection.network}
        )
        return connection


__all__ = [
    "UserService",
]
