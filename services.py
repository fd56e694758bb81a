from decimal import Decimal
from typing import List, Optional
import structlog

from db import Account
from exceptions import AccountError, ErrorKind
from repositories import AccountRepository

# Configure structured logging
logger = structlog.get_logger()


class AccountService:
    def __init__(self, account_repo: AccountRepository, allow_same_account_transfer: bool = False):
        self.account_repo = account_repo
        self.allow_same_account_transfer = allow_same_account_transfer

    def list_accounts(self) -> List[Account]:
        return self.account_repo.find_all()

    def get_account(self, account_id: int) -> Account:
        account = self.account_repo.find_by_id(account_id)
        if account is None:
            logger.warning("Account not found", account_id=account_id)
            raise AccountError(
                f"Account with ID {account_id} not found",
                ErrorKind.ACCOUNT_NOT_FOUND
            )
        return account

    def create_account(self, nombre: Optional[str], cantidad_inicial: Optional[Decimal]) -> Account:
        """Create an account owned by ``nombre`` holding ``cantidad_inicial``."""
        if nombre is None or not nombre.strip():
            logger.warning("Rejected account creation with empty owner name")
            raise AccountError(
                "Owner name cannot be empty",
                ErrorKind.INVALID_AMOUNT
            )

        if cantidad_inicial is None or cantidad_inicial < 0:
            logger.warning(
                "Rejected account creation with invalid initial balance",
                nombre=nombre,
                cantidad_inicial=str(cantidad_inicial)
            )
            raise AccountError(
                "Initial balance cannot be negative",
                ErrorKind.INVALID_AMOUNT
            )

        account = self.account_repo.save(Account(nombre=nombre, cantidad=cantidad_inicial))

        logger.info(
            "Account created",
            account_id=account.id,
            nombre=account.nombre,
            cantidad=str(account.cantidad)
        )

        return account

    def transfer(self, origen: int, destino: int, cantidad: Decimal) -> None:
        """Move ``cantidad`` from account ``origen`` to account ``destino``.

        Both records are re-saved one after the other; there is no
        transaction spanning the two writes and no lock on either row.
        """

        logger.info(
            "Processing transfer",
            origen=origen,
            destino=destino,
            cantidad=str(cantidad)
        )

        if cantidad <= 0:
            logger.warning("Invalid transfer amount", cantidad=str(cantidad))
            raise AccountError(
                "Transfer amount must be greater than zero",
                ErrorKind.INVALID_AMOUNT
            )

        if origen == destino and not self.allow_same_account_transfer:
            logger.warning("Transfer to the same account rejected", account_id=origen)
            raise AccountError(
                "Cannot transfer to the same account",
                ErrorKind.INVALID_AMOUNT
            )

        source = self.account_repo.find_by_id(origen)
        if source is None:
            logger.warning("Source account not found", origen=origen)
            raise AccountError(
                "Source account not found",
                ErrorKind.ACCOUNT_NOT_FOUND
            )

        if destino == origen:
            destination = source
        else:
            destination = self.account_repo.find_by_id(destino)
        if destination is None:
            logger.warning("Destination account not found", destino=destino)
            raise AccountError(
                "Destination account not found",
                ErrorKind.ACCOUNT_NOT_FOUND
            )

        if source.cantidad < cantidad:
            logger.warning(
                "Insufficient balance for transfer",
                origen=origen,
                current_balance=str(source.cantidad),
                requested_amount=str(cantidad)
            )
            raise AccountError(
                "Insufficient balance in source account",
                ErrorKind.INSUFFICIENT_BALANCE
            )

        self._debit(source, cantidad)
        self._credit(destination, cantidad)

        self.account_repo.save(source)
        self.account_repo.save(destination)

        logger.info(
            "Transfer processed successfully",
            origen=origen,
            destino=destino,
            cantidad=str(cantidad),
            source_balance=str(source.cantidad),
            destination_balance=str(destination.cantidad)
        )

    def _debit(self, account: Account, amount: Decimal) -> None:
        old_balance = account.cantidad
        account.cantidad = old_balance - amount

        logger.debug(
            "Debit processed",
            account_id=account.id,
            debit_amount=str(amount),
            old_balance=str(old_balance),
            new_balance=str(account.cantidad)
        )

    def _credit(self, account: Account, amount: Decimal) -> None:
        old_balance = account.cantidad
        account.cantidad = old_balance + amount

        logger.debug(
            "Credit processed",
            account_id=account.id,
            credit_amount=str(amount),
            old_balance=str(old_balance),
            new_balance=str(account.cantidad)
        )


# Factory function for dependency injection
def get_account_service(
    account_repo: AccountRepository,
    allow_same_account_transfer: bool = False
) -> AccountService:
    return AccountService(account_repo, allow_same_account_transfer)
