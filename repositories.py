from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db import Account


class AccountRepository(ABC):
    @abstractmethod
    def find_all(self) -> List[Account]:
        """Get every stored account, in store order."""
        pass

    @abstractmethod
    def find_by_id(self, account_id: int) -> Optional[Account]:
        """Get account by id. Returns None if account doesn't exist."""
        pass

    @abstractmethod
    def save(self, account: Account) -> Account:
        """Insert or update an account and return the stored form."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Get total number of accounts."""
        pass


class SqlAlchemyAccountRepository(AccountRepository):
    def __init__(self, session: Session):
        self.session = session

    def find_all(self) -> List[Account]:
        return list(self.session.execute(select(Account)).scalars().all())

    def find_by_id(self, account_id: int) -> Optional[Account]:
        return self.session.get(Account, account_id)

    def save(self, account: Account) -> Account:
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def count(self) -> int:
        return self.session.execute(select(func.count()).select_from(Account)).scalar_one()


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts: Dict[int, Account] = {}
        self._next_id = 1

    def find_all(self) -> List[Account]:
        return [self._copy(account) for account in self.accounts.values()]

    def find_by_id(self, account_id: int) -> Optional[Account]:
        account = self.accounts.get(account_id)
        return self._copy(account) if account is not None else None

    def save(self, account: Account) -> Account:
        if account.id is None:
            account.id = self._next_id
            self._next_id += 1
        self.accounts[account.id] = self._copy(account)
        return account

    def count(self) -> int:
        return len(self.accounts)

    @staticmethod
    def _copy(account: Account) -> Account:
        # Callers must save() for a change to be stored
        return Account(id=account.id, nombre=account.nombre, cantidad=account.cantidad)


def get_account_repository(session: Session) -> AccountRepository:
    return SqlAlchemyAccountRepository(session)
