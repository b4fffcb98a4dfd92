import json
import boto3
import os
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
lambda_client = boto3.client('lambda')

# Synthetic API Gateway event for the health endpoint
HEALTH_CHECK_EVENT = {
    'httpMethod': 'GET',
    'path': '/api/health',
    'headers': {},
    'requestContext': {'identity': {'sourceIp': 'pre-traffic-hook'}},
    'body': None
}


def lambda_handler(event, context):
    """
    Pre-traffic hook for CodeDeploy.
    Invokes the new version's health endpoint before shifting traffic to it.
    """
    logger.info(f"Pre-traffic hook triggered: {json.dumps(event)}")

    deployment_id = event['DeploymentId']
    lifecycle_event_hook_execution_id = event['LifecycleEventHookExecutionId']

    try:
        target_function = os.environ.get('TARGET_FUNCTION')
        if not target_function:
            raise ValueError("TARGET_FUNCTION environment variable is not set")

        logger.info(f"Running health check on {target_function}")

        response = lambda_client.invoke(
            FunctionName=target_function,
            InvocationType='RequestResponse',
            Payload=json.dumps(HEALTH_CHECK_EVENT)
        )

        response_payload = json.loads(response['Payload'].read())
        logger.info(f"Health check response: {json.dumps(response_payload)}")

        if response.get('FunctionError'):
            raise Exception(f"Function returned error: {response_payload}")

        if response_payload.get('statusCode') != 200:
            raise Exception(f"Health check returned status {response_payload.get('statusCode')}")

        body = json.loads(response_payload.get('body') or '{}')
        if body.get('status') != 'healthy':
            raise Exception(f"Service reported status: {body.get('status')}")

        logger.info(f"Pre-traffic validation passed: version={body.get('version')}")

        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Succeeded'
        )

        return {
            'statusCode': 200,
            'body': json.dumps('Pre-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Pre-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will prevent deployment
        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Failed'
        )

        return {
            'statusCode': 500,
            'body': json.dumps(f'Pre-traffic validation failed: {str(e)}')
        }
