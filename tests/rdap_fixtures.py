"""ipwhois-shaped RDAP results used across the tests."""


def rdap_result(names, ip_version="v4", start="192.0.2.0", end="192.0.2.255"):
    entities = []
    objects = {}
    for i, name in enumerate(names):
        handle = f"ENT-{i}"
        entities.append(handle)
        objects[handle] = {
            "handle": handle,
            "roles": ["registrant"],
            "contact": {"kind": "org", "name": name, "address": None},
        }
    return {
        "query": start,
        "network": {
            "handle": "NET-TEST",
            "ip_version": ip_version,
            "start_address": start,
            "end_address": end,
            "cidr": f"{start}/24",
            "name": "TEST-NET",
        },
        "entities": entities,
        "objects": objects,
    }
