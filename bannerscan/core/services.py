"""
Well-known port to service name table
"""

from typing import Dict

UNKNOWN_SERVICE = "Unknown"

PORT_SERVICES: Dict[int, str] = {
    20: "FTP Data",
    21: "FTP Control",
    22: "SSH",
    23: "Telnet",
    25: "SMTP",
    53: "DNS",
    80: "HTTP",
    110: "POP3",
    143: "IMAP",
    443: "HTTPS",
    993: "IMAPS",
    995: "POP3S",
    1433: "MS SQL Server",
    1521: "Oracle DB",
    3306: "MySQL",
    3389: "RDP",
    5432: "PostgreSQL",
    5000: "Flask/Python Dev Server",
    5001: "Flask/Python Dev Server",
    6379: "Redis",
    7000: "Cassandra/Custom",
    8000: "HTTP Alt/Django",
    8080: "HTTP Alt/Tomcat",
    8443: "HTTPS Alt",
    9200: "Elasticsearch",
    27017: "MongoDB",
}


def lookup(port: int) -> str:
    """Identify service by well-known port number"""
    return PORT_SERVICES.get(port, UNKNOWN_SERVICE)
