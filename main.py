import argparse

import gymnasium as gym

import shipctl  # registers ShipControl-v0
from shipctl.app import ShipControlApp
from shipctl.config import WorldParams


def run_env(episodes: int):
    env = gym.make("ShipControl-v0", render_mode="human")
    for episode in range(episodes):
        obs, info = env.reset()
        done = False
        score = 0.0
        while not done:
            action = env.action_space.sample()
            obs, reward, terminated, truncated, info = env.step(action)
            score += reward
            done = terminated or truncated
        print(f"Episode {episode + 1}: Score = {score:.2f}, reached_goal = {info['reached_goal']}")
    env.close()


def main():
    parser = argparse.ArgumentParser(description='Interactive ship control')
    parser.add_argument('--ships', type=int, default=3, help='Number of ships to spawn')
    parser.add_argument('--width', type=int, default=1280, help='World/window width in pixels')
    parser.add_argument('--height', type=int, default=720, help='World/window height in pixels')
    parser.add_argument('--env', action='store_true', help='Run random rollouts of ShipControl-v0 instead')
    parser.add_argument('--episodes', type=int, default=3, help='Episodes to run with --env')
    args = parser.parse_args()

    if args.env:
        run_env(args.episodes)
        return

    app = ShipControlApp(num_ships=args.ships, world=WorldParams(width=args.width, height=args.height))
    app.run()


if __name__ == '__main__':
    main()
