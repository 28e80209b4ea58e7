"""PCAP capture parsing and routing of MOEX SIMBA market-data packets to JSON."""

__version__ = "1.0.0"