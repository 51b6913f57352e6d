#!/usr/bin/env python3
"""Tests for ExplanationAssembler."""

from unittest.mock import AsyncMock

import pytest

from tx_explainer.explanation_assembler import ExplanationAssembler
from tx_explainer.models import PaymentState, PaymentStatus, RiskLevel
from tx_explainer.payment_verifier import PaymentVerifier
from tx_explainer.transaction_fetcher import TransactionFetcher
from tx_explainer.utils.provider_pool import ProviderPool

from conftest import (
    ALICE,
    BOB,
    OTHER_TOKEN,
    PAY_TX,
    PAYMENT_ADDRESS,
    PRICE,
    STABLECOIN,
    TARGET_TX,
    approval_log,
    make_receipt,
    make_transaction,
    transfer_log,
)


@pytest.fixture
def assembler(network, explainer_config):
    pool = ProviderPool(network.rpc_urls, request_timeout=1.0, client_factory=network.client_factory)
    return ExplanationAssembler(
        explainer_config,
        TransactionFetcher(pool),
        PaymentVerifier(explainer_config.payment, pool),
    )


def add_target(network, **receipt_kwargs):
    network[0].add_transaction(make_transaction())
    network[0].add_receipt(make_receipt(**receipt_kwargs))


def add_payment(network, amount: int = PRICE):
    logs = (transfer_log(STABLECOIN, ALICE, PAYMENT_ADDRESS, amount, PAY_TX),)
    network[0].add_receipt(make_receipt(tx_hash=PAY_TX, logs=logs))


class TestExplain:
    """Test suite for ExplanationAssembler.explain."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tx", [None, "", "   ", "0xdeadbeef"])
    async def test_invalid_target_returns_placeholder(self, assembler, network, tx):
        """Test that a malformed target hash yields a prompt without network calls."""
        result = await assembler.explain(tx, PAY_TX)

        assert result.summary == "Paste a transaction hash"
        assert result.fee == "—"
        assert result.access_unlocked is False
        assert network.calls == []

    @pytest.mark.asyncio
    async def test_explains_without_payment(self, assembler, network):
        """Test that the explanation is computed but stays locked without a payment hash."""
        add_target(network, logs=(
            approval_log(OTHER_TOKEN, ALICE, BOB, 100),
            transfer_log(STABLECOIN, ALICE, BOB, 10),
        ))

        result = await assembler.explain(TARGET_TX)

        assert result.access_unlocked is False
        assert result.summary == "Contract interaction"
        assert result.fee == "0.000021 ETH"
        assert result.explorer_url == f"https://basescan.org/tx/{TARGET_TX}"
        assert "• Contracts touched: 2" in result.explanation
        assert "• Token transfers: 1" in result.explanation
        assert "• Approvals: 1" in result.explanation
        assert "• Risk level: Medium" in result.explanation
        assert result.classification.risk is RiskLevel.MEDIUM

    @pytest.mark.asyncio
    async def test_explanation_lines(self, assembler, network):
        add_target(network)

        result = await assembler.explain(TARGET_TX)

        assert result.explanation.splitlines() == [
            "• Status: Success",
            "• From: 0x1111…1111",
            "• To: 0x2222…2222",
            "• Contracts touched: 0",
            "• Token transfers: 0",
            "• Approvals: 0",
            "• Risk level: Low",
        ]

    @pytest.mark.asyncio
    async def test_confirmed_payment_unlocks(self, assembler, network):
        add_target(network)
        add_payment(network)

        result = await assembler.explain(TARGET_TX, PAY_TX)

        assert result.access_unlocked is True

    @pytest.mark.asyncio
    async def test_underpayment_does_not_unlock(self, assembler, network):
        add_target(network)
        add_payment(network, PRICE - 1)

        result = await assembler.explain(TARGET_TX, PAY_TX)

        assert result.access_unlocked is False
        assert "• Status: Success" in result.explanation

    @pytest.mark.asyncio
    async def test_invalid_payment_hash_does_not_unlock(self, assembler, network):
        add_target(network)

        result = await assembler.explain(TARGET_TX, "not-a-hash")

        assert result.access_unlocked is False
        assert result.summary == "Contract interaction"

    @pytest.mark.asyncio
    async def test_whitespace_is_stripped(self, assembler, network):
        add_target(network)
        add_payment(network)

        result = await assembler.explain(f"  {TARGET_TX}\n", f" {PAY_TX} ")

        assert result.access_unlocked is True
        assert result.explorer_url.endswith(TARGET_TX)

    @pytest.mark.asyncio
    async def test_unlock_depends_only_on_verifier(self, assembler, network):
        """Test that the unlock flag mirrors the verifier's CONFIRMED answer."""
        add_target(network)
        assembler.verifier.verify_payment = AsyncMock(
            return_value=PaymentStatus(PaymentState.CONFIRMED, "Payment confirmed.", paid_amount=PRICE)
        )

        result = await assembler.explain(TARGET_TX, PAY_TX)

        assert result.access_unlocked is True
        assembler.verifier.verify_payment.assert_awaited_once_with(PAY_TX)

    @pytest.mark.asyncio
    async def test_native_transfer_label(self, assembler, network):
        network[0].add_transaction(make_transaction(value=10**17))
        network[0].add_receipt(make_receipt())

        result = await assembler.explain(TARGET_TX)

        assert result.summary == "ETH transfer"

    @pytest.mark.asyncio
    async def test_failed_target_status(self, assembler, network):
        add_target(network, status=0)

        result = await assembler.explain(TARGET_TX)

        assert "• Status: Failed" in result.explanation

    @pytest.mark.asyncio
    async def test_pending_target(self, assembler, network):
        """Test that a pending transaction is explained without fee or logs."""
        network[0].add_transaction(make_transaction(block_number=None))

        result = await assembler.explain(TARGET_TX)

        assert result.fee == "—"
        assert "• Status: Pending (not yet mined)" in result.explanation
        assert "• Risk level: Low" in result.explanation

    @pytest.mark.asyncio
    async def test_indexing_target(self, assembler, network):
        network[0].add_transaction(make_transaction())

        result = await assembler.explain(TARGET_TX)

        assert "• Status: Mined, receipt still indexing" in result.explanation

    @pytest.mark.asyncio
    async def test_unknown_target(self, assembler, network):
        result = await assembler.explain(TARGET_TX)

        assert result.summary == "We can’t load details right now"
        assert result.fee == "—"
        assert result.explorer_url == f"https://basescan.org/tx/{TARGET_TX}"

    @pytest.mark.asyncio
    async def test_unavailable_target_keeps_unlock(self, assembler, network):
        """Test that a confirmed payment stays unlocked even if the target cannot load."""
        add_payment(network)
        for endpoint in network.everywhere():
            endpoint.failing.add("get_transaction")

        result = await assembler.explain(TARGET_TX, PAY_TX)

        assert result.summary == "We can’t load details right now"
        assert result.access_unlocked is True

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error(self, assembler, network):
        assembler.fetcher.fetch = AsyncMock(side_effect=RuntimeError("boom"))

        result = await assembler.explain(TARGET_TX)

        assert result.summary == "We can’t load details right now"
        assert result.access_unlocked is False

    @pytest.mark.asyncio
    async def test_to_dict(self, assembler, network):
        add_target(network)

        payload = (await assembler.explain(TARGET_TX)).to_dict()

        assert set(payload) == {"summary", "fee", "explanation", "explorer", "accessUnlocked"}
        assert payload["accessUnlocked"] is False
