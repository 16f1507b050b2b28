"""
Wire constants of the proxy v3.0 API: header names, paths and query names.
"""

DEFAULT_TIMEOUT_MS = 30 * 1000
MIN_REQUEST_ID_LENGTH = 8

# Request metadata carried on every attempt
REQUEST_ID_HEADER = "X-oio-req-id"
TIMEOUT_HEADER = "X-oio-timeout"  # microseconds
ACTION_MODE_HEADER = "X-oio-action-mode"
AUTOCREATE_ACTION_MODE = "autocreate"

# Container headers
ACCOUNT_HEADER = "X-oio-container-meta-sys-account"
CONTAINER_SYS_NAME_HEADER = "X-oio-container-meta-sys-name"
M2_CTIME_HEADER = "X-oio-container-meta-sys-m2-ctime"
M2_INIT_HEADER = "X-oio-container-meta-sys-m2-init"
M2_USAGE_HEADER = "X-oio-container-meta-sys-m2-usage"
M2_VERSION_HEADER = "X-oio-container-meta-sys-m2-version"
NS_HEADER = "X-oio-container-meta-sys-ns"
TYPE_HEADER = "X-oio-container-meta-sys-type"
USER_NAME_HEADER = "X-oio-container-meta-sys-user-name"
SCHEMA_VERSION_HEADER = "X-oio-container-meta-x-schema-version"
VERSION_MAIN_ADMIN_HEADER = "X-oio-container-meta-x-version-main-admin"
VERSION_MAIN_ALIASES_HEADER = "X-oio-container-meta-x-version-main-aliases"
VERSION_MAIN_CHUNKS_HEADER = "X-oio-container-meta-x-version-main-chunks"
VERSION_MAIN_CONTENTS_HEADER = "X-oio-container-meta-x-version-main-contents"
VERSION_MAIN_PROPERTIES_HEADER = "X-oio-container-meta-x-version-main-properties"

# Listing headers
LIST_TRUNCATED_HEADER = "X-oio-list-truncated"
LIST_MARKER_HEADER = "X-oio-list-marker"

# Content headers
CONTENT_META_CHUNK_METHOD_HEADER = "X-oio-content-meta-chunk-method"
CONTENT_META_CTIME_HEADER = "X-oio-content-meta-ctime"
CONTENT_META_HASH_HEADER = "X-oio-content-meta-hash"
CONTENT_META_HASH_METHOD_HEADER = "X-oio-content-meta-hash-method"
CONTENT_META_ID_HEADER = "X-oio-content-meta-id"
CONTENT_META_LENGTH_HEADER = "X-oio-content-meta-length"
CONTENT_META_MIME_TYPE_HEADER = "X-oio-content-meta-mime-type"
CONTENT_META_POLICY_HEADER = "X-oio-content-meta-policy"
CONTENT_META_VERSION_HEADER = "X-oio-content-meta-version"
PROP_HEADER_PREFIX = "X-oio-content-meta-x-"

EC_PREFIX = "ec/"

# Paths, relative to /v3.0/{ns}
CS_NSINFO_PATH = "/conscience/info"
CS_GETSRV_PATH = "/conscience/list"
DIR_REF_CREATE_PATH = "/reference/create"
DIR_REF_SHOW_PATH = "/reference/show"
DIR_REF_DELETE_PATH = "/reference/destroy"
DIR_LINK_SRV_PATH = "/reference/link"
DIR_UNLINK_SRV_PATH = "/reference/unlink"
CREATE_CONTAINER_PATH = "/container/create"
GET_CONTAINER_INFO_PATH = "/container/show"
LIST_OBJECTS_PATH = "/container/list"
DELETE_CONTAINER_PATH = "/container/destroy"
CONTAINER_SET_PROP_PATH = "/container/set_properties"
CONTAINER_GET_PROP_PATH = "/container/get_properties"
CONTAINER_DEL_PROP_PATH = "/container/del_properties"
GET_BEANS_PATH = "/content/prepare"
PUT_OBJECT_PATH = "/content/create"
GET_OBJECT_PATH = "/content/show"
DELETE_OBJECT_PATH = "/content/delete"
OBJECT_SET_PROP_PATH = "/content/set_properties"
OBJECT_GET_PROP_PATH = "/content/get_properties"
OBJECT_DEL_PROP_PATH = "/content/del_properties"

# Query parameters
ACCOUNT_PARAM = "acct"
REFERENCE_PARAM = "ref"
PATH_PARAM = "path"
TYPE_PARAM = "type"
VERSION_PARAM = "version"
MAX_PARAM = "max"
PREFIX_PARAM = "prefix"
MARKER_PARAM = "marker"
DELIMITER_PARAM = "delimiter"
FLUSH_PARAM = "flush"
