"""Withdrawal permission flags and their readable form."""

from __future__ import annotations

from enum import IntFlag


class WithdrawPermission(IntFlag):
    NONE = 0
    AUTO_WITHDRAW_CRYPTO = 1 << 0
    AUTO_WITHDRAW_CRYPTO_WITH_API_PERMISSION = 1 << 1
    AUTO_WITHDRAW_CRYPTO_WITH_SETUP = 1 << 2
    WITHDRAW_CRYPTO_WITH_2FA = 1 << 3
    WITHDRAW_CRYPTO_WITH_SMS = 1 << 4
    WITHDRAW_CRYPTO_WITH_EMAIL = 1 << 5
    WITHDRAW_CRYPTO_WITH_WEBSITE_APPROVAL = 1 << 6
    WITHDRAW_CRYPTO_WITH_API_PERMISSION = 1 << 7
    AUTO_WITHDRAW_FIAT = 1 << 8
    AUTO_WITHDRAW_FIAT_WITH_API_PERMISSION = 1 << 9
    AUTO_WITHDRAW_FIAT_WITH_SETUP = 1 << 10
    WITHDRAW_FIAT_WITH_2FA = 1 << 11
    WITHDRAW_FIAT_WITH_SMS = 1 << 12
    WITHDRAW_FIAT_WITH_EMAIL = 1 << 13
    WITHDRAW_FIAT_WITH_WEBSITE_APPROVAL = 1 << 14
    WITHDRAW_FIAT_WITH_API_PERMISSION = 1 << 15
    WITHDRAW_CRYPTO_VIA_WEBSITE_ONLY = 1 << 16
    WITHDRAW_FIAT_VIA_WEBSITE_ONLY = 1 << 17


UNKNOWN_WITHDRAWAL_TYPE_TEXT = "UNKNOWN"
NO_API_WITHDRAWAL_METHODS_TEXT = "NONE, WEBSITE ONLY"

WITHDRAW_PERMISSION_TEXT: dict[int, str] = {
    WithdrawPermission.AUTO_WITHDRAW_CRYPTO: "AUTO WITHDRAW CRYPTO",
    WithdrawPermission.AUTO_WITHDRAW_CRYPTO_WITH_API_PERMISSION: "AUTO WITHDRAW CRYPTO WITH API PERMISSION",
    WithdrawPermission.AUTO_WITHDRAW_CRYPTO_WITH_SETUP: "AUTO WITHDRAW CRYPTO WITH SETUP",
    WithdrawPermission.WITHDRAW_CRYPTO_WITH_2FA: "WITHDRAW CRYPTO WITH 2FA",
    WithdrawPermission.WITHDRAW_CRYPTO_WITH_SMS: "WITHDRAW CRYPTO WITH SMS",
    WithdrawPermission.WITHDRAW_CRYPTO_WITH_EMAIL: "WITHDRAW CRYPTO WITH EMAIL",
    WithdrawPermission.WITHDRAW_CRYPTO_WITH_WEBSITE_APPROVAL: "WITHDRAW CRYPTO WITH WEBSITE APPROVAL",
    WithdrawPermission.WITHDRAW_CRYPTO_WITH_API_PERMISSION: "WITHDRAW CRYPTO WITH API PERMISSION",
    WithdrawPermission.AUTO_WITHDRAW_FIAT: "AUTO WITHDRAW FIAT",
    WithdrawPermission.AUTO_WITHDRAW_FIAT_WITH_API_PERMISSION: "AUTO WITHDRAW FIAT WITH API PERMISSION",
    WithdrawPermission.AUTO_WITHDRAW_FIAT_WITH_SETUP: "AUTO WITHDRAW FIAT WITH SETUP",
    WithdrawPermission.WITHDRAW_FIAT_WITH_2FA: "WITHDRAW FIAT WITH 2FA",
    WithdrawPermission.WITHDRAW_FIAT_WITH_SMS: "WITHDRAW FIAT WITH SMS",
    WithdrawPermission.WITHDRAW_FIAT_WITH_EMAIL: "WITHDRAW FIAT WITH EMAIL",
    WithdrawPermission.WITHDRAW_FIAT_WITH_WEBSITE_APPROVAL: "WITHDRAW FIAT WITH WEBSITE APPROVAL",
    WithdrawPermission.WITHDRAW_FIAT_WITH_API_PERMISSION: "WITHDRAW FIAT WITH API PERMISSION",
    WithdrawPermission.WITHDRAW_CRYPTO_VIA_WEBSITE_ONLY: "WITHDRAW CRYPTO VIA WEBSITE ONLY",
    WithdrawPermission.WITHDRAW_FIAT_VIA_WEBSITE_ONLY: "WITHDRAW FIAT VIA WEBSITE ONLY",
}


def supports_withdraw_permissions(exchange_permissions: int, permissions: int) -> bool:
    """True if every bit in `permissions` is offered by the exchange."""
    return permissions & exchange_permissions == permissions


def format_withdraw_permissions(permissions: int) -> str:
    """Render each set bit in bit order, joined by ' & '."""
    services: list[str] = []
    for i in range(32):
        check = 1 << i
        if permissions & check == 0:
            continue
        text = WITHDRAW_PERMISSION_TEXT.get(check)
        if text is None:
            text = f"{UNKNOWN_WITHDRAWAL_TYPE_TEXT}[1<<{i}]"
        services.append(text)

    if services:
        return " & ".join(services)
    return NO_API_WITHDRAWAL_METHODS_TEXT
