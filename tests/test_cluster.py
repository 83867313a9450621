"""
Tests for cluster and vote account queries.
"""
from types import SimpleNamespace

import pytest
from solders.pubkey import Pubkey

from stakewallet.cluster import ClusterManager
from stakewallet.exceptions import AccountNotFoundError
from stakewallet.rpc import EpochInfo


def _vote(stake, vote_pubkey=None):
    return SimpleNamespace(
        vote_pubkey=vote_pubkey or Pubkey.new_unique(),
        node_pubkey=Pubkey.new_unique(),
        activated_stake=stake,
        commission=5,
        last_vote=1000,
        root_slot=968,
    )


@pytest.fixture
def cluster(ctx):
    return ClusterManager(ctx)


@pytest.mark.asyncio
class TestClusterManager:
    """Cluster-wide reads"""

    async def test_epoch_info(self, cluster, fake_rpc):
        fake_rpc.get_epoch_info.return_value = EpochInfo(epoch=7, slot_index=1, slots_in_epoch=32)
        info = await cluster.epoch_info()
        assert info.epoch == 7

    async def test_simple_reads(self, cluster, fake_rpc):
        fake_rpc.get_slot.return_value = 123
        fake_rpc.get_block_height.return_value = 120
        fake_rpc.get_version.return_value = "1.18.22"

        assert await cluster.current_slot() == 123
        assert await cluster.block_height() == 120
        assert await cluster.cluster_version() == "1.18.22"

    async def test_validators_sorted_by_stake(self, cluster, fake_rpc):
        fake_rpc.get_vote_accounts.return_value = SimpleNamespace(
            current=[_vote(10), _vote(300)],
            delinquent=[_vote(50)],
        )

        validators = await cluster.validators()

        assert [v.activated_stake for v in validators] == [300, 50, 10]
        assert [v.delinquent for v in validators] == [False, True, False]

    async def test_vote_account(self, cluster, fake_rpc):
        wanted = Pubkey.new_unique()
        fake_rpc.get_vote_accounts.return_value = SimpleNamespace(
            current=[_vote(10), _vote(20, vote_pubkey=wanted)],
            delinquent=[],
        )

        validator = await cluster.vote_account(wanted)

        assert validator.vote_pubkey == wanted
        assert validator.activated_stake == 20

    async def test_unknown_vote_account(self, cluster, fake_rpc):
        fake_rpc.get_vote_accounts.return_value = SimpleNamespace(current=[_vote(10)], delinquent=[])
        with pytest.raises(AccountNotFoundError):
            await cluster.vote_account(Pubkey.new_unique())
