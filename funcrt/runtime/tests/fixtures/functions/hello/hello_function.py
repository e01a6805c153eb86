import os


def init(execution):
    # Cold start: runs once per execution environment.
    return {"greeting": os.environ.get("HELLO_GREETING", "hello")}


def lambda_handler(event, context):
    execution = context.execution
    execution.state.increment("calls")

    if not isinstance(event, dict) or not event.get("name"):
        raise ValueError("bad input")

    name = event["name"]
    execution.state.update("seen", lambda seen: (seen or []) + [name])
    print(f"greeting {name}")

    return {"message": f"{execution.resources['greeting']} {name}"}
