from sqlalchemy import Column, String, Float, Integer, BigInteger, Boolean
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class NetworkStats(Base):
    __tablename__ = 'network_stats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(Float, nullable=False, index=True)
    block_height = Column(BigInteger, nullable=False)
    tps = Column(Float, nullable=False)
    avg_block_time = Column(Float, nullable=False)
    total_transactions = Column(BigInteger, nullable=False)
    active_validators = Column(Integer, nullable=False)
    network_hashrate = Column(String(32), nullable=False)
    gas_price = Column(Float, nullable=False)
    total_supply = Column(String(40), nullable=False)

class Transaction(Base):
    __tablename__ = 'transactions'

    hash = Column(String(66), primary_key=True)
    block_number = Column(BigInteger, nullable=False)
    from_address = Column(String(42), nullable=False)
    to_address = Column(String(42), nullable=False)
    value = Column(String(40), nullable=False)
    gas_used = Column(Integer, nullable=False)
    gas_price = Column(Float, nullable=False)
    fee = Column(Float, nullable=False)
    status = Column(String(10), nullable=False)  # success, failed
    kind = Column(String(10), nullable=False, default="transfer")  # transfer, contract
    timestamp = Column(Float, nullable=False, index=True)

class Validator(Base):
    __tablename__ = 'validators'

    address = Column(String(42), primary_key=True)
    name = Column(String(64), nullable=False)
    stake = Column(Float, nullable=False, index=True)
    commission = Column(Float, nullable=False)
    uptime = Column(Float, nullable=False)  # Percentage, 0-100
    blocks_proposed = Column(Integer, default=0)
    blocks_validated = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, index=True)
    delegators = Column(Integer, default=0)
    apr = Column(Float, default=0.0)
    last_seen = Column(Float, nullable=False)
    timestamp = Column(Float, nullable=False)

class Dapp(Base):
    __tablename__ = 'dapps'

    contract_address = Column(String(42), primary_key=True)
    name = Column(String(64), nullable=False)
    category = Column(String(20), nullable=False)  # DeFi, Gaming, NFT, Infrastructure, Social, Other
    tvl = Column(Float, default=0.0, index=True)
    volume_24h = Column(Float, default=0.0)
    users_24h = Column(Integer, default=0)
    transactions_24h = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, index=True)
    description = Column(String, default="")
    website = Column(String, default="")
    logo = Column(String, default="")
    timestamp = Column(Float, nullable=False)
