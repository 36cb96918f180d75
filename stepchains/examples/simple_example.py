"""
Simple example demonstrating the StepChains pattern.
"""

import datetime
import logging

from stepchains import Middleware, Process, Step, TimingMiddleware


# Define some simple steps
def greet_user(context):
    name = context.get('name', 'World')
    greeting = f"Hello, {name}!"
    print(f"Step: {greeting}")
    return {'greeting': greeting}


async def add_timestamp(context):
    timestamp = datetime.datetime.now().isoformat()
    print(f"Step: Added timestamp {timestamp}")
    return {'timestamp': timestamp}


class FormatMessage(Step):
    def execute(self, context):
        message = f"{context['greeting']} (at {context['timestamp']})"
        print("Step: Formatted message")
        return {'final_message': message}


# Define middleware
class LoggingMiddleware(Middleware):
    async def around_step(self, step, context, next_callable):
        print(f"[LOG] Starting {step.name}")
        result = await next_callable(context)
        print(f"[LOG] Completed {step.name}")
        return result


def main():
    print("=" * 60)
    print("StepChains Simple Example")
    print("=" * 60)
    print()

    timing = TimingMiddleware(verbose=True)

    # Build the process
    process = (Process(greet_user, [add_timestamp, FormatMessage()], name='greeting')
        .use_middleware(LoggingMiddleware())
        .use_middleware(timing))

    print(f"Process built: {process}")
    print()

    # Run the process
    print("Running process...")
    print("-" * 60)

    result = process.execute({'name': 'Alice'})

    print("-" * 60)
    print()

    print("✓ Process completed!")
    print(f"Final message: {result['final_message']}")
    for entry in timing.get_report():
        print(f"  {entry['step']:20} {entry['avg_ms']:6.2f}ms")

    print()
    print("=" * 60)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
