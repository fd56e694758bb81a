import pytest
from decimal import Decimal

from db import Account
from exceptions import AccountError, ErrorKind
from repositories import InMemoryAccountRepository
from services import AccountService, get_account_service


@pytest.fixture
def repo():
    repo = InMemoryAccountRepository()
    repo.save(Account(nombre="Ana", cantidad=Decimal("100")))
    repo.save(Account(nombre="Luis", cantidad=Decimal("50")))
    return repo


@pytest.fixture
def service(repo):
    return get_account_service(repo)


def balance_of(repo, account_id):
    return repo.find_by_id(account_id).cantidad


class TestCreateAccount:
    def test_assigns_id_and_stores_values(self, service, repo):
        account = service.create_account("Marta", Decimal("12.50"))

        assert account.id == 3
        stored = repo.find_by_id(account.id)
        assert stored.nombre == "Marta"
        assert stored.cantidad == Decimal("12.50")

    @pytest.mark.parametrize("nombre", ["", "   ", None])
    def test_blank_name(self, service, repo, nombre):
        with pytest.raises(AccountError) as exc_info:
            service.create_account(nombre, Decimal("10"))

        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT
        assert repo.count() == 2

    @pytest.mark.parametrize("amount", [Decimal("-0.01"), None])
    def test_invalid_initial_balance(self, service, repo, amount):
        with pytest.raises(AccountError) as exc_info:
            service.create_account("Marta", amount)

        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT
        assert repo.count() == 2


class TestGetAccount:
    def test_found(self, service):
        assert service.get_account(1).nombre == "Ana"

    def test_not_found(self, service):
        with pytest.raises(AccountError) as exc_info:
            service.get_account(42)

        assert exc_info.value.kind == ErrorKind.ACCOUNT_NOT_FOUND
        assert exc_info.value.message == "Account with ID 42 not found"

    def test_list_accounts(self, service):
        assert [a.nombre for a in service.list_accounts()] == ["Ana", "Luis"]


class TestTransfer:
    def test_moves_exact_amount(self, service, repo):
        service.transfer(1, 2, Decimal("30"))

        assert balance_of(repo, 1) == Decimal("70")
        assert balance_of(repo, 2) == Decimal("80")

    def test_conserves_total(self, service, repo):
        service.transfer(2, 1, Decimal("49.99"))

        assert balance_of(repo, 1) + balance_of(repo, 2) == Decimal("150")
        assert balance_of(repo, 2) == Decimal("0.01")

    @pytest.mark.parametrize(
        "origen, destino, amount, kind",
        [
            (1, 2, Decimal("0"), ErrorKind.INVALID_AMOUNT),
            (1, 2, Decimal("-1"), ErrorKind.INVALID_AMOUNT),
            (1, 1, Decimal("10"), ErrorKind.INVALID_AMOUNT),
            (99, 2, Decimal("10"), ErrorKind.ACCOUNT_NOT_FOUND),
            (1, 99, Decimal("10"), ErrorKind.ACCOUNT_NOT_FOUND),
            (1, 2, Decimal("100.01"), ErrorKind.INSUFFICIENT_BALANCE),
        ],
    )
    def test_rejected_transfer_leaves_balances(self, service, repo, origen, destino, amount, kind):
        with pytest.raises(AccountError) as exc_info:
            service.transfer(origen, destino, amount)

        assert exc_info.value.kind == kind
        assert balance_of(repo, 1) == Decimal("100")
        assert balance_of(repo, 2) == Decimal("50")

    def test_amount_checked_before_existence(self, service):
        with pytest.raises(AccountError) as exc_info:
            service.transfer(98, 99, Decimal("0"))

        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT

    def test_same_account_allowed_when_configured(self, repo):
        service = AccountService(repo, allow_same_account_transfer=True)

        service.transfer(1, 1, Decimal("40"))

        assert balance_of(repo, 1) == Decimal("100")

    def test_same_account_still_checks_balance(self, repo):
        service = AccountService(repo, allow_same_account_transfer=True)

        with pytest.raises(AccountError) as exc_info:
            service.transfer(1, 1, Decimal("500"))

        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_BALANCE


class TestAccountError:
    def test_defaults_to_general_error(self):
        error = AccountError("boom")

        assert error.kind == ErrorKind.GENERAL_ERROR
        assert str(error) == "boom"
