"""Names shared with the images the metal3 workload runs.

Container names, ports, environment-variable names and secret names here are
read by the ironic, baremetal-operator and downloader images. Renaming any of
them is a breaking change for those images.
"""

from __future__ import annotations

from typing import Final

# Workload identity
METAL3_APP_NAME: Final = "metal3"
DEPLOYMENT_NAME: Final = "metal3"
STATE_SERVICE: Final = "metal3-state"
CBO_LABEL_NAME: Final = "baremetal.openshift.io/cluster-baremetal-operator"
CBO_OWNED_ANNOTATION: Final = "baremetal.openshift.io/owned"
SERVICE_ACCOUNT_NAME: Final = "cluster-baremetal-operator"
PRIORITY_CLASS_NAME: Final = "system-node-critical"
MASTER_NODE_ROLE: Final = "node-role.kubernetes.io/master"
WORKLOAD_MANAGEMENT_ANNOTATION: Final = "target.workload.openshift.io/management"
WORKLOAD_MANAGEMENT_VALUE: Final = '{"effect": "PreferredDuringScheduling"}'
TOLERATION_SECONDS: Final = 120

# Volumes and mount points
SHARED_VOLUME: Final = "metal3-shared"
SHARED_MOUNT_PATH: Final = "/shared"
IMAGE_CACHE_VOLUME: Final = "metal3-cache"
IMAGE_CACHE_MOUNT_PATH: Final = "/shared/html/images"
AUTH_ROOT_DIR: Final = "/auth"
TLS_ROOT_DIR: Final = "/certs"
IRONIC_CREDENTIALS_VOLUME: Final = "metal3-ironic-basic-auth"
IRONIC_RPC_CREDENTIALS_VOLUME: Final = "metal3-ironic-rpc-basic-auth"
INSPECTOR_CREDENTIALS_VOLUME: Final = "metal3-inspector-basic-auth"
IRONIC_TLS_VOLUME: Final = "metal3-ironic-tls"
INSPECTOR_TLS_VOLUME: Final = "metal3-inspector-tls"
TRUSTED_CA_VOLUME: Final = "trusted-ca"
TRUSTED_CA_MOUNT_PATH: Final = "/etc/pki/ca-trust/extracted/pem"
TRUSTED_CA_CONFIG_MAP: Final = "cbo-trusted-ca"
TRUSTED_CA_KEY: Final = "ca-bundle.crt"
TRUSTED_CA_PATH: Final = "tls-ca-bundle.pem"
TLS_CERT_KEY: Final = "tls.crt"

# Secrets and keys
MARIADB_SECRET_NAME: Final = "metal3-mariadb-password"
MARIADB_SECRET_KEY: Final = "password"
IRONIC_SECRET_NAME: Final = "metal3-ironic-password"
IRONIC_RPC_SECRET_NAME: Final = "metal3-ironic-rpc-password"
INSPECTOR_SECRET_NAME: Final = "metal3-ironic-inspector-password"
TLS_SECRET_NAME: Final = "metal3-ironic-tls"
PULL_SECRET_NAME: Final = "pull-secret"
PULL_SECRET_KEY: Final = ".dockerconfigjson"
IRONIC_USERNAME_KEY: Final = "username"
IRONIC_PASSWORD_KEY: Final = "password"
IRONIC_CONFIG_KEY: Final = "auth-config"
IRONIC_HTPASSWD_KEY: Final = "htpasswd"
CREDENTIAL_KEYS: Final = (IRONIC_USERNAME_KEY, IRONIC_PASSWORD_KEY, IRONIC_CONFIG_KEY)

# Environment variable names
PROVISIONING_IP: Final = "PROVISIONING_IP"
PROVISIONING_INTERFACE: Final = "PROVISIONING_INTERFACE"
PROVISIONING_MACS: Final = "PROVISIONING_MACS"
DHCP_RANGE: Final = "DHCP_RANGE"
HTTP_PORT: Final = "HTTP_PORT"
DEPLOY_KERNEL_URL: Final = "DEPLOY_KERNEL_URL"
DEPLOY_RAMDISK_URL: Final = "DEPLOY_RAMDISK_URL"
IRONIC_ENDPOINT: Final = "IRONIC_ENDPOINT"
IRONIC_INSPECTOR_ENDPOINT: Final = "IRONIC_INSPECTOR_ENDPOINT"
MACHINE_IMAGE_URL: Final = "RHCOS_IMAGE_URL"
IP_OPTIONS: Final = "IP_OPTIONS"
HTPASSWD_ENV_VAR: Final = "HTTP_BASIC_HTPASSWD"  # nosec B105
MARIADB_PASSWORD_ENV_VAR: Final = "MARIADB_PASSWORD"  # nosec B105
IRONIC_INSECURE_ENV_VAR: Final = "IRONIC_INSECURE"
INSPECTOR_INSECURE_ENV_VAR: Final = "IRONIC_INSPECTOR_INSECURE"
IRONIC_CACERT_ENV_VAR: Final = "IRONIC_CACERT_FILE"
SSH_KEY_ENV_VAR: Final = "IRONIC_RAMDISK_SSH_KEY"
EXTERNAL_IP_ENV_VAR: Final = "IRONIC_EXTERNAL_IP"
PULL_SECRET_ENV_VAR: Final = "IRONIC_AGENT_PULL_SECRET"  # nosec B105
WATCH_NAMESPACE_ENV_VAR: Final = "WATCH_NAMESPACE"
HTTP_PROXY_ENV_VAR: Final = "HTTP_PROXY"
HTTPS_PROXY_ENV_VAR: Final = "HTTPS_PROXY"
NO_PROXY_ENV_VAR: Final = "NO_PROXY"
PROXY_ENV_VARS: Final = (HTTP_PROXY_ENV_VAR, HTTPS_PROXY_ENV_VAR, NO_PROXY_ENV_VAR)

# Downward API field paths
HOST_IP_FIELD: Final = "status.hostIP"
POD_NAMESPACE_FIELD: Final = "metadata.namespace"
POD_NAME_FIELD: Final = "metadata.name"

# Ports (container port == host port, the pod runs on the host network)
DEFAULT_HTTP_PORT: Final = 6180
HTTP_PORT_NAME: Final = "http"
METRICS_PORT: Final = 60000
MARIADB_PORT: Final = 3306
IRONIC_API_PORT: Final = 6385
IRONIC_JSON_RPC_PORT: Final = 8089
INSPECTOR_PORT: Final = 5050
OPERATOR_HEALTH_ADDR: Final = ":9446"

IRONIC_ENDPOINT_URL: Final = f"https://localhost:{IRONIC_API_PORT}/v1/"
INSPECTOR_ENDPOINT_URL: Final = f"https://localhost:{INSPECTOR_PORT}/v1/"
