"""
Centralized Redis Key Format Definitions.

Single source of truth for every Redis key the order store reads or writes.

Usage:
    from libs.redis_client.keys import RedisKeys

    key = RedisKeys.order("0xabc...")
    # Returns: "order:0xabc..."

    key = RedisKeys.index("offerer_orderStatus-createdAt-all", "0xdef..._open")
    # Returns: "idx:offerer_orderStatus-createdAt-all:0xdef..._open"

Design Principles:
    - All key formats defined in one place
    - Static methods for easy discovery (IDE autocomplete)
    - Clear naming convention: entity_type:identifier
"""


class RedisKeys:
    """
    Centralized Redis key format definitions for orders, indexes and nonces.
    """

    @staticmethod
    def order(order_hash: str) -> str:
        """
        Generate Redis key for a stored order item.

        Format: "order:{order_hash}"

        Args:
            order_hash: Order hash (primary key)

        Returns:
            Redis key string holding the JSON order item

        Examples:
            >>> RedisKeys.order("0x01")
            'order:0x01'
        """
        return f"order:{order_hash}"

    @staticmethod
    def index(index_id: str, partition_value: str) -> str:
        """
        Generate Redis key for one partition of a secondary index.

        Format: "idx:{index_id}:{partition_value}"

        The key holds a sorted set whose members are ordered
        lexicographically by sort value then order hash.

        Args:
            index_id: Index identifier (e.g., "chainId_filler-createdAt-all")
            partition_value: Composite partition key (e.g., "1_0xfiller")

        Examples:
            >>> RedisKeys.index("offerer-createdAt-all", "0xabc")
            'idx:offerer-createdAt-all:0xabc'
        """
        return f"idx:{index_id}:{partition_value}"

    @staticmethod
    def nonce(offerer: str, chain_id: int) -> str:
        """
        Generate Redis key for the last nonce used by an offerer on a chain.

        Format: "nonce:{offerer}-{chain_id}"

        Examples:
            >>> RedisKeys.nonce("0xabc", 1)
            'nonce:0xabc-1'
        """
        return f"nonce:{offerer}-{chain_id}"


__all__ = ["RedisKeys"]
