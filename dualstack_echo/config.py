# Fixed run configuration. Nothing here is read from the environment.

PORT_RANGE_START = 6881
PORT_RANGE_END = 6900

# Seconds allowed for each address lookup
LOOKUP_TIMEOUT = 2.0
# Share of a public lookup spent on DNS before falling back to HTTP
DNS_LOOKUP_TIMEOUT = 1.0

BUFFER_SIZE = 1024
LISTEN_BACKLOG = 128

UNSPECIFIED_IPV4 = "0.0.0.0"
UNSPECIFIED_IPV6 = "::"

# OpenDNS answers this name with the address the query came from
MYIP_HOSTNAME = "myip.opendns.com"
OPENDNS_RESOLVERS_V4 = ["208.67.222.222", "208.67.220.220"]
OPENDNS_RESOLVERS_V6 = ["2620:119:35::35", "2620:119:53::53"]

IPIFY_URL_V4 = "https://api.ipify.org"
IPIFY_URL_V6 = "https://api6.ipify.org"
