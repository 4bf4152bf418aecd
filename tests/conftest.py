import pytest

EXAMPLE_CADDYFILE = """{
  email ops@example.com
  log {
    output file /var/log/caddy/access.log {
      roll_size 10mb
      roll_keep 5
    }
    format json
  }
}

# Reusable logging snippet
(site_log) {
  log {
    output file /var/log/caddy/access.log {
      roll_size 10mb
      roll_keep 5
    }
    format json
  }
}

# Reusable header snippet
(proxy_headers) {
  header {
    X-Proxied-By "Caddy"
  }
}

(php_bot_trap) {
    @php_trap path *.php
    handle @php_trap {
        redir https://speed.cloudflare.com/__down?bytes=1500000000 307
    }
}

portainer.example.com {
  import proxy_headers
  import site_log
  reverse_proxy http://10.0.0.5:9000
}

shop.example.com {
  import proxy_headers
  import site_log
  import php_bot_trap
  reverse_proxy 10.0.0.6:3080

  # Analytics proxy
  handle /script.js {
      rewrite * /sa.js
      reverse_proxy https://analytics.example.com {
          header_up Host analytics.example.com
      }
  }
}
"""


@pytest.fixture
def example_caddyfile() -> str:
    return EXAMPLE_CADDYFILE
