import base64

import pytest


def make_resource(kind, name, labels=None, api_version='v1', **extra):
    body = {
        'apiVersion': api_version,
        'kind': kind,
        'metadata': {'name': name},
    }
    if labels is not None:
        body['metadata']['labels'] = labels
    body.update(extra)
    return body


def b64(text):
    return base64.b64encode(text.encode('utf-8')).decode('ascii')


@pytest.fixture
def service():
    return {
        'apiVersion': 'v1',
        'kind': 'Service',
        'metadata': {
            'name': 'server',
            'namespace': 'default',
            'creationTimestamp': '2021-11-02T10:00:00Z',
            'labels': {
                'app.kubernetes.io/name': 'server',
                'helm.sh/chart': 'gitpod-1.0.0',
                'component': 'server',
                'team': 'core',
            },
            'annotations': {'meta.helm.sh/release-name': 'gitpod'},
        },
        'spec': {
            'selector': {'app.kubernetes.io/name': 'server', 'component': 'server'},
            'ports': [{'name': 'http', 'port': 3000, 'targetPort': 3000}],
            'type': 'ClusterIP',
        },
        'status': {'loadBalancer': {}},
    }


@pytest.fixture
def deployment():
    return {
        'apiVersion': 'apps/v1',
        'kind': 'Deployment',
        'metadata': {
            'name': 'server',
            'namespace': 'gitpod',
            'uid': '7f1c',
            'labels': {'component': 'server', 'kind': 'deployment', 'stage': 'production'},
            'annotations': {'deployment.kubernetes.io/revision': '3'},
        },
        'spec': {
            'replicas': 2,
            'selector': {'matchLabels': {'app.kubernetes.io/name': 'server', 'component': 'server'}},
            'template': {
                'metadata': {
                    'creationTimestamp': '2021-11-02T10:00:00Z',
                    'labels': {
                        'app.kubernetes.io/name': 'server',
                        'component': 'server',
                        'release': 'gitpod',
                    },
                    'annotations': {'checksum/config': 'abc123'},
                },
                'spec': {
                    'imagePullSecrets': [{'name': 'registry-pull'}],
                    'serviceAccountName': 'server',
                    'containers': [
                        {'name': 'server', 'image': 'eu.gcr.io/gitpod/server:1.0', 'env': [{'name': 'A', 'value': '1'}]},
                    ],
                },
            },
        },
        'status': {'replicas': 2, 'readyReplicas': 2},
    }


@pytest.fixture
def cluster_role():
    return {
        'apiVersion': 'rbac.authorization.k8s.io/v1',
        'kind': 'ClusterRole',
        'metadata': {'name': 'gitpod-ws-daemon', 'labels': {'component': 'ws-daemon', 'team': 'workspace'}},
        'rules': [{'apiGroups': [''], 'resources': ['pods'], 'verbs': ['get', 'list']}],
    }


@pytest.fixture
def content_service_config():
    return make_resource(
        'ConfigMap', 'content-service-config',
        labels={'component': 'content-service'},
        data={'config.json': '{"a":1}', 'other.txt': '{"untouched":true}'},
    )


@pytest.fixture
def auth_providers_config():
    return make_resource(
        'ConfigMap', 'auth-providers-config',
        labels={'component': 'server'},
        data={'auth-providers.json': '[{"id":"Public-GitHub","type":"GitHub"}]', 'notes': 'plain text'},
    )
