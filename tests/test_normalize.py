import copy

import pytest

from installer_diff.config import LabelRules, RuleSet
from installer_diff.errors import ProjectionError
from installer_diff.normalize.filters import NOISE_FIELDS, normalize
from installer_diff.normalize.kinds import KIND_STRATEGIES
from installer_diff.parser.manifest import Resource

from conftest import make_resource


def _normalized(body):
    return normalize(Resource(body=copy.deepcopy(body))).body


def test_normalize_removes_generic_noise():
    body = make_resource(
        'ServiceAccount', 'server',
        labels={'component': 'server', 'heritage': 'Helm'},
        automountServiceAccountToken=False,
        imagePullSecrets=[{'name': 'registry-pull'}],
        status={'phase': 'Active'},
    )
    body['metadata'].update({
        'namespace': 'gitpod',
        'creationTimestamp': '2021-11-02T10:00:00Z',
        'annotations': {'a': 'b'},
        'uid': '123',
    })
    norm = _normalized(body)
    assert norm == {
        'apiVersion': 'v1',
        'kind': 'ServiceAccount',
        'metadata': {
            'name': 'server',
            'uid': '123',
            'labels': {'component': 'server'},
            'annotations': {},
            'creationTimestamp': None,
        },
    }


def test_normalize_fills_missing_metadata():
    norm = _normalized({'apiVersion': 'v1', 'kind': 'Namespace'})
    assert norm['metadata'] == {'labels': {}, 'annotations': {}, 'creationTimestamp': None}


def test_normalize_service_filters_selector(service):
    norm = _normalized(service)
    assert norm['metadata']['labels'] == {'component': 'server', 'team': 'core'}
    assert norm['spec']['selector'] == {'component': 'server'}
    assert norm['spec']['ports'] == service['spec']['ports']
    assert norm['spec']['type'] == 'ClusterIP'
    assert 'status' not in norm


def test_normalize_service_without_spec():
    norm = _normalized(make_resource('Service', 'headless'))
    assert 'spec' not in norm


def test_normalize_external_name_service_keeps_spec():
    spec = {'type': 'ExternalName', 'externalName': 'db.example.com'}
    norm = _normalized(make_resource('Service', 'database', spec=spec))
    assert norm['spec'] == spec
    assert 'selector' not in norm['spec']


def test_normalize_service_keeps_empty_selector():
    norm = _normalized(make_resource('Service', 'x', spec={'selector': {'release': 'gitpod'}}))
    assert norm['spec'] == {'selector': {}}


def test_normalize_deployment_cleans_pod_template(deployment):
    norm = _normalized(deployment)
    template = norm['spec']['template']
    assert template['metadata']['labels'] == {'component': 'server'}
    assert template['metadata']['creationTimestamp'] is None
    assert template['metadata']['annotations'] == {'checksum/config': 'abc123'}
    assert 'imagePullSecrets' not in template['spec']
    assert template['spec']['containers'] == deployment['spec']['template']['spec']['containers']
    assert template['spec']['serviceAccountName'] == 'server'
    # selector is immutable in the cluster, it is kept as rendered
    assert norm['spec']['selector'] == deployment['spec']['selector']
    assert norm['spec']['replicas'] == 2
    assert norm['metadata']['labels'] == {'component': 'server'}
    assert 'status' not in norm


def test_normalize_deployment_without_template():
    norm = _normalized(make_resource('Deployment', 'empty', api_version='apps/v1', spec={'replicas': 1}))
    assert norm['spec'] == {
        'replicas': 1,
        'template': {'metadata': {'labels': {}, 'creationTimestamp': None}},
    }


def test_normalize_cluster_role_clears_labels(cluster_role):
    norm = _normalized(cluster_role)
    assert norm['metadata']['labels'] == {}
    assert norm['rules'] == cluster_role['rules']


def test_normalize_other_kinds_have_no_strategy():
    assert set(KIND_STRATEGIES) == {'Service', 'Deployment', 'ClusterRole'}
    body = make_resource('ConfigMap', 'x', labels={'release': 'gitpod'}, data={'k': 'v'})
    assert _normalized(body)['data'] == {'k': 'v'}


@pytest.mark.parametrize('fixture', ['service', 'deployment', 'cluster_role', 'content_service_config'])
def test_normalize_is_idempotent(request, fixture):
    once = _normalized(request.getfixturevalue(fixture))
    assert _normalized(once) == once


@pytest.mark.parametrize('fixture', ['service', 'deployment', 'cluster_role', 'auth_providers_config'])
def test_noise_fields_are_erased(request, fixture):
    norm = _normalized(request.getfixturevalue(fixture))
    meta = norm['metadata']
    assert meta['annotations'] == {}
    assert 'namespace' not in meta
    assert meta['creationTimestamp'] is None
    for key in NOISE_FIELDS:
        assert key not in norm


def test_normalize_uses_injected_label_rules(service):
    rules = RuleSet(labels=LabelRules(keys=frozenset({'team'}), prefixes=()))
    norm = normalize(Resource(body=service), rules).body
    assert norm['metadata']['labels'] == {
        'app.kubernetes.io/name': 'server',
        'helm.sh/chart': 'gitpod-1.0.0',
        'component': 'server',
    }


def test_normalize_propagates_projection_errors():
    body = make_resource('Deployment', 'broken', api_version='apps/v1', spec={'template': {'metadata': []}})
    with pytest.raises(ProjectionError):
        normalize(Resource(body=body))


def test_normalize_rejects_malformed_metadata():
    with pytest.raises(ProjectionError):
        normalize(Resource(body={'kind': 'ConfigMap', 'metadata': {'name': 'x', 'annotations': 'nope'}}))


def test_normalize_keeps_nested_fields_named_like_noise():
    body = make_resource('ConfigMap', 'x', data={'status': 'ok', 'imagePullSecrets': 'none'})
    assert _normalized(body)['data'] == {'status': 'ok', 'imagePullSecrets': 'none'}
