from setuptools import setup, find_packages

setup(
    name="nft-ticketing",
    version="1.0.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "web3>=7.0.0",
        "eth-account>=0.13.0",
        "eth-utils>=4.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "httpx>=0.25.0",
        "prometheus-client>=0.17.0",
        "click>=8.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ticketctl = nft_ticketing.cli.main:cli",
        ],
    },
    python_requires=">=3.8",
    author="PlatformQ Team",
    description="NFT event ticket ownership, metadata and issuance workflows",
)
