#!/usr/bin/env python3
"""
Example of using SmartAccountClient with network configuration.
"""
import asyncio
import os

from smart_account_sdk import (
    Call,
    LocalSigner,
    NetworkConfig,
    SmartAccountClient,
    SmartAccountError,
)

ERC20_TRANSFER_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]


async def main():
    """
    Demonstrate usage of the SmartAccountClient with network-based configuration.

    This example shows how to:
    1. Initialize the client from a network configuration
    2. Verify the RPC endpoint's chain ID
    3. Call a token contract from the smart account
    4. Send an atomic batch through the batch caller
    """
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    TOKEN_ADDRESS = os.environ.get("TOKEN_ADDRESS")
    BATCH_CALLER_ADDRESS = os.environ.get("BATCH_CALLER_ADDRESS")
    RECIPIENT = os.environ.get("RECIPIENT", "0x000000000000000000000000000000000000dEaD")

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    print("Available networks:")
    for network_name in NetworkConfig.load_networks().keys():
        print(f"  - {network_name}")
    print()

    signer = LocalSigner(PRIVATE_KEY)
    print(f"Signer address: {signer.address}")

    network = "abstract-testnet"
    overrides = {"batch_caller_address": BATCH_CALLER_ADDRESS} if BATCH_CALLER_ADDRESS else {}
    client = SmartAccountClient.from_network(network, signer=signer, **overrides)

    await client.assert_chain_id()
    print(f"Connected to network: {network}")
    print(f"Smart account: {await client.get_address()}")

    try:
        if TOKEN_ADDRESS:
            print("Transferring tokens...")
            tx_hash = await client.write_contract(
                TOKEN_ADDRESS, ERC20_TRANSFER_ABI, "transfer", args=(RECIPIENT, 1)
            )
            print(f"Token transfer sent: {tx_hash}")

        if BATCH_CALLER_ADDRESS:
            print("Sending batch...")
            tx_hash = await client.send_transaction_batch([
                Call(target=RECIPIENT, value=10**12),
                Call(target=RECIPIENT, value=2 * 10**12),
            ])
            receipt = await client.wait_for_receipt(tx_hash)
            print(f"Batch mined in block {receipt.block_number}")

    except SmartAccountError as e:
        state = "may be pending" if e.broadcast else "was not sent"
        print(f"Error during {e.stage} (transaction {state}): {str(e)}")


if __name__ == "__main__":
    asyncio.run(main())
