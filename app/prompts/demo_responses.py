"""Canned report served in demo mode and as the fallback for failed analyses."""

MOCK_RESPONSE = """## 🛡️ StackSentinel Analysis

### 1. The Breakdown
I see a monolithic React frontend application connecting directly to a single PostgreSQL instance over the public internet, likely hosted on a basic VPS. There is no load balancer, no caching layer, and the API logic appears to be coupled tightly within the frontend codebase or a thin server-side shim. Authentication seems minimal.

### 2. 🚨 CRITICAL RISKS (The "Deep Think" Findings)

* **Risk:** Database Connection Exhaustion (SPOF)
* **Simulation:** "If traffic spikes to 10k RPS, the Postgres connection pool will immediately saturate. Since the client is connecting directly, every active user consumes a database connection. The database CPU will spike to 100%, rejecting all new queries."
* **Severity:** High

* **Risk:** Security Exposure (Public DB)
* **Simulation:** "The database port (5432) is exposed to the public internet. A simple brute-force attack or CVE exploit could dump the entire user table within minutes."
* **Severity:** High

### 3. 🛠️ The Fix (Architectural Recommendation)

* **Decoupling:** Introduce a backend API layer (Node.js/Go) to manage database connections via a connection pool. Do not let the frontend talk to the DB.
* **Caching:** Implement a KV Cache (Redis) for read-heavy endpoints (e.g., fetching user profiles) to reduce DB load by 90%.
* **Security:** Place the Database in a Private Subnet (VPC). Use a Bastion host or VPN for administrative access.

#### Recommended Architecture

```mermaid
graph TD
    U["Users"] --> CDN["CDN + WAF"]
    CDN --> LB["Load Balancer"]
    LB --> API1["API Node 1"]
    LB --> API2["API Node 2"]
    API1 --> C["Redis Cache"]
    API2 --> C
    API1 --> DB[("Postgres Primary - Private Subnet")]
    API2 --> DB
    DB --> R[("Read Replica")]
```

### 4. The Verdict
* **Stability Score:** 15/100
* **One-Line Summary:** A ticking time bomb: architecturally fragile and insecure by design."""
