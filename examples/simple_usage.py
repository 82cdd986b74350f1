#!/usr/bin/env python3
"""
Simple example of using the Smart Account SDK.
"""
import asyncio
import os

from smart_account_sdk import DeploymentConfig, SmartAccountClient


async def main():
    """
    Demonstrate basic usage of the SmartAccountClient.

    This example shows how to:
    1. Initialize the client from explicit deployment addresses
    2. Look up the counterfactual smart account address
    3. Send a value transfer (deploying the account on first use)
    """
    # Read configuration from environment
    RPC_URL = os.environ.get("RPC_URL", "https://api.testnet.abs.xyz")
    FACTORY_ADDRESS = os.environ.get("FACTORY_ADDRESS")
    VALIDATOR_ADDRESS = os.environ.get("VALIDATOR_ADDRESS")
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    RECIPIENT = os.environ.get("RECIPIENT", "0x000000000000000000000000000000000000dEaD")

    # Verify configuration
    if not FACTORY_ADDRESS or not VALIDATOR_ADDRESS:
        print("ERROR: FACTORY_ADDRESS and VALIDATOR_ADDRESS environment variables are required")
        return

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    config = DeploymentConfig(
        chain_id=int(os.environ.get("CHAIN_ID", "11124")),
        factory_address=FACTORY_ADDRESS,
        validator_address=VALIDATOR_ADDRESS,
        rpc_url=RPC_URL,
    )
    client = SmartAccountClient(config, priv_key=PRIVATE_KEY)

    account = await client.get_address()
    print(f"Owner: {client.address}")
    print(f"Smart account: {account} (deployed: {await client.is_deployed()})")

    try:
        tx_hash = await client.send_transaction(RECIPIENT, value=10**12)
        receipt = await client.wait_for_receipt(tx_hash)

        print("Transaction sent successfully!")
        print(f"Transaction hash: {receipt.tx_hash}")
        print(f"Block number: {receipt.block_number}")
        print(f"Status: {'Success' if receipt.status == 1 else 'Failed'}")

    except Exception as e:
        print(f"Error sending transaction: {str(e)}")


if __name__ == "__main__":
    asyncio.run(main())
